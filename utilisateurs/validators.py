import re

from django.core.exceptions import ValidationError

MOTIFS_INTERDITS = [
    re.compile(r'123456'),
    re.compile(r'password', re.IGNORECASE),
    re.compile(r'qwerty', re.IGNORECASE),
    re.compile(r'admin', re.IGNORECASE),
    re.compile(r'letmein', re.IGNORECASE),
]

CARACTERES_SPECIAUX = re.compile(r'[!@#$%^&*()_+\-=\[\]{};\':"\\|,.<>/?]')


def verifier_force_mot_de_passe(mot_de_passe):
    """Retourne la liste des règles non respectées (vide si le mot de passe est robuste)"""
    erreurs = []
    if len(mot_de_passe) < 8:
        erreurs.append('Le mot de passe doit contenir au moins 8 caractères')
    if len(mot_de_passe) > 128:
        erreurs.append('Le mot de passe ne peut pas dépasser 128 caractères')
    if not re.search(r'[a-z]', mot_de_passe):
        erreurs.append('Le mot de passe doit contenir au moins une lettre minuscule')
    if not re.search(r'[A-Z]', mot_de_passe):
        erreurs.append('Le mot de passe doit contenir au moins une lettre majuscule')
    if not re.search(r'\d', mot_de_passe):
        erreurs.append('Le mot de passe doit contenir au moins un chiffre')
    if not CARACTERES_SPECIAUX.search(mot_de_passe):
        erreurs.append('Le mot de passe doit contenir au moins un caractère spécial')
    if any(motif.search(mot_de_passe) for motif in MOTIFS_INTERDITS):
        erreurs.append('Le mot de passe ne doit pas contenir de motifs courants')
    return erreurs


class ForceMotDePasseValidator:
    """Validateur branché dans AUTH_PASSWORD_VALIDATORS"""

    def validate(self, password, user=None):
        erreurs = verifier_force_mot_de_passe(password)
        if erreurs:
            raise ValidationError(erreurs, code='mot_de_passe_faible')

    def get_help_text(self):
        return (
            "Votre mot de passe doit contenir entre 8 et 128 caractères, une minuscule, "
            "une majuscule, un chiffre et un caractère spécial."
        )
