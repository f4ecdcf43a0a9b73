"""
Commande Django pour initialiser la structure académique de l'ISI.

Usage:
    python manage.py seed_isi [--sans-utilisateurs]

Crée les niveaux, semestres, filières et matières, puis un administrateur,
des professeurs affectés à leurs matières et quelques étudiants. La commande
est idempotente : les enregistrements existants sont conservés.
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from academic_structure.models import Niveau, Semestre, Filiere, Matiere, ProfesseurMatiere
from utilisateurs.models import Utilisateur

NIVEAUX = [
    ('L1', 'licence', 1), ('L2', 'licence', 2), ('L3', 'licence', 3),
    ('M1', 'master', 4), ('M2', 'master', 5),
    ('1ING', 'ingenieur', 6), ('2ING', 'ingenieur', 7), ('3ING', 'ingenieur', 8),
]

SEMESTRES = {
    'L1': ['S1', 'S2'], 'M1': ['S1', 'S2'], '1ING': ['S1', 'S2'],
    'L2': ['S3', 'S4'], 'M2': ['S3', 'S4'], '2ING': ['S3', 'S4'],
    'L3': ['S5', 'S6'], '3ING': ['S5', 'S6'],
}

FILIERES_LICENCE = [
    ('CS', "Licence en sciences de l'informatique"),
    ('IRS', 'Licence en ingénierie des systèmes informatiques'),
    ('SE', 'Electronique, Electrotechnique et Automatique'),
]

FILIERES_MASTER = [
    ('SSII', "Sécurité des Systèmes d'Informations et des Infrastructures"),
    ('MP2L', 'Mastère Professionnel en Logiciels Libres'),
    ('SIIOT', 'Mastère Professionnel en Systèmes Intelligents et IoT'),
    ('MDL', 'Master Professionnel en Développement Logiciel Et nouvelles technologies'),
    ('SIIVA', 'Mastère de Recherche - Option Sciences Images'),
    ('GL', 'Mastère de Recherche - Option Génie Logiciel'),
]

FILIERES_INGENIEUR = [
    ('IDL', 'Ingénierie de Développement du Logiciel'),
    ('IDISC', 'Ingénierie et Développement des Infrastructures et des Services de Communications'),
    ('ISEOC', 'Ingénierie des Systèmes Embarqués et Objets Connectés'),
]

MATIERES_GENERIQUES = [
    'Mathématiques Appliquées', 'Anglais Technique', 'Communication',
    'Entrepreneuriat', 'Éthique et Déontologie', 'Stage/Projet',
]

# Matières de spécialité, indexées par suffixe du code de filière
MATIERES_SPECIALITE = {
    'CS': [
        'Algorithmique et Structures de Données', 'Programmation Orientée Objet', 'Bases de Données',
        "Systèmes d'Exploitation", 'Réseaux Informatiques', 'Génie Logiciel',
    ],
    'IRS': [
        'Architecture des Ordinateurs', 'Systèmes Embarqués', 'Réseaux et Télécommunications',
        'Sécurité Informatique', 'Administration Systèmes', 'Protocoles Réseaux',
    ],
    'SE': [
        'Électronique Analogique', 'Électronique Numérique', 'Automatique',
        'Traitement du Signal', 'Microprocesseurs', 'Systèmes de Contrôle',
    ],
    'IDL': [
        'Développement Web Avancé', 'Frameworks JavaScript', 'Architecture Logicielle',
        'DevOps et CI/CD', 'Tests et Qualité Logicielle', 'Gestion de Projets Agiles',
    ],
    'IDISC': [
        'Réseaux Haut Débit', 'Sécurité des Communications', 'Cloud Computing',
        'Virtualisation', 'Services Web', 'Infrastructure IT',
    ],
    'ISEOC': [
        'Internet des Objets', 'Systèmes Embarqués Temps Réel', 'Capteurs et Actionneurs',
        'Communication Sans Fil', 'Programmation Embarquée', 'Edge Computing',
    ],
}

# (email, prénom, nom, suffixes de filière, rôles)
PROFESSEURS = [
    ('prof.cs@isi.tn', 'Mohamed', 'Ben Ahmed', ('CS',), ('cours', 'td')),
    ('prof.irs@isi.tn', 'Fatma', 'Trabelsi', ('IRS',), ('cours', 'tp')),
    ('prof.se@isi.tn', 'Ahmed', 'Khelifi', ('SE',), ('cours', 'tp')),
    ('prof.master@isi.tn', 'Sonia', 'Hamdi', ('SSII', 'MP2L', 'SIIOT', 'MDL', 'SIIVA', 'GL'), ('cours',)),
    ('prof.ing@isi.tn', 'Karim', 'Bouaziz', ('IDL', 'IDISC', 'ISEOC'), ('cours', 'td', 'tp')),
]

ETUDIANTS = [
    ('etudiant.l1@isi.tn', 'Ahmed', 'Étudiant L1', 'L1', 'L1-CS'),
    ('etudiant.l2@isi.tn', 'Fatma', 'Étudiant L2', 'L2', 'L2-IRS'),
    ('etudiant.l3@isi.tn', 'Karim', 'Étudiant L3', 'L3', 'L3-SE'),
    ('etudiant.m1@isi.tn', 'Sonia', 'Étudiant M1', 'M1', 'M1-SSII'),
    ('etudiant.2ing@isi.tn', 'Nadia', 'Étudiant 2ING', '2ING', '2ING-IDL'),
]

MOT_DE_PASSE_ADMIN = 'Direction#Isi24'
MOT_DE_PASSE_PROFESSEUR = 'Enseignant#Isi24'
MOT_DE_PASSE_ETUDIANT = 'Etudiant#Isi24'

MATIERES_PAR_PROFESSEUR = 8


class Command(BaseCommand):
    help = "Initialise les niveaux, filières, matières et comptes de démonstration de l'ISI"

    def add_arguments(self, parser):
        parser.add_argument(
            '--sans-utilisateurs',
            action='store_true',
            help='Crée uniquement la structure académique',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.HTTP_INFO("🌱 Initialisation de la base ISI..."))

        niveaux = self._niveaux()
        semestres = self._semestres(niveaux)
        filieres = self._filieres(niveaux)
        matieres = self._matieres(filieres, semestres)

        if not options['sans_utilisateurs']:
            self._admin()
            self._professeurs(matieres)
            self._etudiants(niveaux, filieres)

        self.stdout.write(self.style.SUCCESS('🎉 Initialisation terminée'))

    def _niveaux(self):
        niveaux = {}
        for nom, type_niveau, ordre in NIVEAUX:
            niveaux[nom], _ = Niveau.objects.get_or_create(nom=nom, defaults={'type': type_niveau, 'ordre': ordre})
        self.stdout.write(f"✅ {len(niveaux)} niveaux")
        return niveaux

    def _semestres(self, niveaux):
        semestres = {}
        for nom_niveau, noms in SEMESTRES.items():
            semestres[nom_niveau] = [
                Semestre.objects.get_or_create(niveau=niveaux[nom_niveau], ordre=ordre, defaults={'nom': nom})[0]
                for ordre, nom in enumerate(noms, start=1)
            ]
        self.stdout.write(f"✅ {sum(len(s) for s in semestres.values())} semestres")
        return semestres

    def _filieres(self, niveaux):
        definitions = []
        for niveau in ('L1', 'L2', 'L3'):
            definitions += [(niveau, f"{niveau}-{code}", nom) for code, nom in FILIERES_LICENCE]
        for niveau in ('M1', 'M2'):
            definitions += [(niveau, f"{niveau}-{code}", nom) for code, nom in FILIERES_MASTER]
        definitions.append(('1ING', '1ING-COMMUN', "Cycle d'Ingénieur - Tronc Commun"))
        for niveau in ('2ING', '3ING'):
            definitions += [(niveau, f"{niveau}-{code}", nom) for code, nom in FILIERES_INGENIEUR]

        filieres = {}
        for niveau, code, nom in definitions:
            filieres[code], _ = Filiere.objects.get_or_create(
                code=code, defaults={'nom': nom, 'niveau': niveaux[niveau]}
            )
        self.stdout.write(f"✅ {len(filieres)} filières")
        return filieres

    def _matieres(self, filieres, semestres):
        matieres = []
        for code, filiere in filieres.items():
            semestres_filiere = semestres[filiere.niveau.nom]
            suffixe = code.split('-', 1)[1]
            specialite = MATIERES_SPECIALITE.get(suffixe, MATIERES_GENERIQUES)

            for i, nom in enumerate(specialite[:len(semestres_filiere) * 3]):
                matieres.append(self._matiere(f"{code}-MAT{i + 1}", nom, filiere, semestres_filiere[i % len(semestres_filiere)]))
            for j, nom in enumerate(MATIERES_GENERIQUES[:len(semestres_filiere) * 2]):
                matieres.append(self._matiere(f"{code}-GEN{j + 1}", nom, filiere, semestres_filiere[j % len(semestres_filiere)]))

        self.stdout.write(f"✅ {len(matieres)} matières")
        return matieres

    def _matiere(self, code, nom, filiere, semestre):
        matiere, _ = Matiere.objects.get_or_create(
            code=code, filiere=filiere, defaults={'nom': nom, 'semestre': semestre}
        )
        return matiere

    def _admin(self):
        if not Utilisateur.objects.filter(email='admin@isi.tn').exists():
            Utilisateur.objects.create_superuser('admin@isi.tn', MOT_DE_PASSE_ADMIN, prenom='Admin', nom='ISI')
            self.stdout.write(f"👤 Administrateur admin@isi.tn créé (mot de passe: {MOT_DE_PASSE_ADMIN})")

    def _professeurs(self, matieres):
        affectations = 0
        for email, prenom, nom, suffixes, roles in PROFESSEURS:
            professeur = Utilisateur.objects.filter(email=email).first()
            if professeur is None:
                professeur = Utilisateur.objects.create_user(
                    email, MOT_DE_PASSE_PROFESSEUR, prenom=prenom, nom=nom, role='professeur'
                )

            siennes = [m for m in matieres if m.code.split('-')[1] in suffixes and '-MAT' in m.code]
            for matiere in siennes[:MATIERES_PAR_PROFESSEUR]:
                for role in roles:
                    # Un seul professeur par rôle et par matière
                    _, cree = ProfesseurMatiere.objects.get_or_create(
                        matiere=matiere, role=role, defaults={'professeur': professeur}
                    )
                    affectations += cree
        self.stdout.write(f"👨‍🏫 {len(PROFESSEURS)} professeurs, {affectations} nouvelle(s) affectation(s)")

    def _etudiants(self, niveaux, filieres):
        for email, prenom, nom, niveau, filiere in ETUDIANTS:
            if not Utilisateur.objects.filter(email=email).exists():
                Utilisateur.objects.create_user(
                    email, MOT_DE_PASSE_ETUDIANT, prenom=prenom, nom=nom, role='etudiant',
                    niveau=niveaux[niveau], filiere=filieres[filiere],
                )
        self.stdout.write(f"👨‍🎓 {len(ETUDIANTS)} étudiants")
