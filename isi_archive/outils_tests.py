"""
Fabriques partagées par les tests des applications.
"""
import shutil
import tempfile

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings

from academic_structure.models import Niveau, Filiere, Semestre, Matiere, ProfesseurMatiere
from documents.models import Document, DocumentMatiere
from utilisateurs.models import Utilisateur
from utilisateurs.tokens import creer_access_token

MOT_DE_PASSE = 'Archive#Test24'


class DonneesTestMixin:
    """Création d'utilisateurs, de structure académique et de documents"""

    @classmethod
    def creer_niveau(cls, nom='L1', type_niveau='licence', ordre=1):
        niveau, _ = Niveau.objects.get_or_create(nom=nom, defaults={'type': type_niveau, 'ordre': ordre})
        return niveau

    @classmethod
    def creer_semestre(cls, niveau, nom='S1', ordre=1):
        semestre, _ = Semestre.objects.get_or_create(niveau=niveau, ordre=ordre, defaults={'nom': nom})
        return semestre

    @classmethod
    def creer_filiere(cls, niveau, code='L1-CS', nom="Sciences de l'informatique"):
        return Filiere.objects.create(code=code, nom=nom, niveau=niveau)

    @classmethod
    def creer_matiere(cls, filiere, semestre, code='L1-CS-MAT1', nom='Algorithmique'):
        return Matiere.objects.create(code=code, nom=nom, filiere=filiere, semestre=semestre)

    @classmethod
    def creer_utilisateur(cls, email='etudiant@isi.tn', role='etudiant', **kwargs):
        return Utilisateur.objects.create_user(
            email,
            kwargs.pop('password', MOT_DE_PASSE),
            prenom=kwargs.pop('prenom', 'Test'),
            nom=kwargs.pop('nom', role.capitalize()),
            role=role,
            **kwargs
        )

    @classmethod
    def creer_admin(cls, email='admin@isi.tn', **kwargs):
        return cls.creer_utilisateur(email=email, role='admin', **kwargs)

    @classmethod
    def creer_professeur(cls, email='prof@isi.tn', **kwargs):
        return cls.creer_utilisateur(email=email, role='professeur', **kwargs)

    @classmethod
    def creer_etudiant(cls, filiere, email='etudiant@isi.tn', **kwargs):
        return cls.creer_utilisateur(email=email, role='etudiant', filiere=filiere, niveau=filiere.niveau, **kwargs)

    @classmethod
    def affecter(cls, professeur, matiere, role='cours'):
        return ProfesseurMatiere.objects.create(professeur=professeur, matiere=matiere, role=role)

    @classmethod
    def creer_document(cls, auteur, matiere=None, categorie='cours', titre='Chapitre 1', **kwargs):
        document = Document.objects.create(
            titre=titre,
            categorie=categorie,
            nom_fichier=kwargs.pop('nom_fichier', 'chapitre1.pdf'),
            chemin_fichier=kwargs.pop('chemin_fichier', 'documents/L1/L1-CS/S1/L1-CS-MAT1/cours/chapitre1.pdf'),
            taille_fichier=kwargs.pop('taille_fichier', 1024),
            type_mime=kwargs.pop('type_mime', 'application/pdf'),
            matiere=matiere,
            telecharge_par=auteur,
            **kwargs
        )
        if matiere is not None:
            DocumentMatiere.objects.create(document=document, matiere=matiere)
        return document

    @classmethod
    def creer_structure(cls):
        """Niveau L1, filière L1-CS, semestre S1 et une matière"""
        cls.niveau = cls.creer_niveau()
        cls.semestre = cls.creer_semestre(cls.niveau)
        cls.filiere = cls.creer_filiere(cls.niveau)
        cls.matiere = cls.creer_matiere(cls.filiere, cls.semestre)

    def authentifier(self, utilisateur):
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {creer_access_token(utilisateur)}')

    def deconnecter(self):
        self.client.credentials()


def fichier_pdf(nom='cours.pdf', contenu=b'%PDF-1.4 contenu de test'):
    return SimpleUploadedFile(nom, contenu, content_type='application/pdf')


class StockageTemporaireMixin:
    """Redirige UPLOAD_PATH vers un dossier temporaire pour la durée du test"""

    def setUp(self):
        super().setUp()
        self.dossier_upload = tempfile.mkdtemp()
        self.override_upload = override_settings(UPLOAD_PATH=self.dossier_upload)
        self.override_upload.enable()

    def tearDown(self):
        self.override_upload.disable()
        shutil.rmtree(self.dossier_upload, ignore_errors=True)
        super().tearDown()
