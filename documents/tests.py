import re
from pathlib import Path

from django.core.cache import cache
from django.test import SimpleTestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from audit.models import AuditLog
from isi_archive.exceptions import ErreurMetier
from isi_archive.outils_tests import DonneesTestMixin, StockageTemporaireMixin, fichier_pdf
from .models import Document, DocumentMatiere, DocumentPFE
from . import stockage


class StockageTests(SimpleTestCase):

    def test_nom_unique(self):
        nom = stockage.generer_nom_unique('Cours chapitre (1).PDF')
        self.assertRegex(nom, r'^\d+_Cours_chapitre__1__[0-9a-f]{16}\.pdf$')

    def test_nom_unique_tronque(self):
        nom = stockage.generer_nom_unique('a' * 80 + '.docx')
        racine = re.match(r'^\d+_(a+)_', nom).group(1)
        self.assertEqual(len(racine), 50)

    def test_dossier_document(self):
        dossier = stockage.dossier_destination('L1', 'L1-CS', 'S1', 'td', 'L1-CS-MAT1')
        self.assertEqual(dossier.as_posix(), 'documents/L1/L1-CS/S1/L1-CS-MAT1/td')

    def test_dossier_pfe_sans_matiere(self):
        dossier = stockage.dossier_destination('L3', 'L3-CS', 'S5', 'pfe')
        self.assertEqual(dossier.as_posix(), 'documents/L3/L3-CS/S5/pfe')

    def test_segments_nettoyes(self):
        dossier = stockage.dossier_destination('L1', '../etc', 'S 1', 'cours', 'M/1')
        self.assertEqual(dossier.as_posix(), 'documents/L1/___etc/S_1/M_1/cours')

    def test_metadonnees_manquantes(self):
        with self.assertRaises(ErreurMetier):
            stockage.dossier_destination('L1', '', 'S1', 'cours', 'MAT1')


class DepotDocumentTests(StockageTemporaireMixin, DonneesTestMixin, APITestCase):

    @classmethod
    def setUpTestData(cls):
        cls.creer_structure()
        cls.professeur = cls.creer_professeur()
        cls.etudiant = cls.creer_etudiant(cls.filiere)
        cls.affecter(cls.professeur, cls.matiere)
        cls.autre_matiere = cls.creer_matiere(cls.filiere, cls.semestre, code='L1-CS-MAT2', nom='Analyse')

    def setUp(self):
        super().setUp()
        self.authentifier(self.professeur)

    def deposer(self, **donnees):
        donnees.setdefault('titre', 'Chapitre 1')
        donnees.setdefault('categorie', 'cours')
        donnees.setdefault('document', fichier_pdf())
        return self.client.post('/api/documents/', donnees)

    def test_depot_range_le_fichier(self):
        response = self.deposer(matiere_id=self.matiere.pk)

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        document = Document.objects.get(pk=response.data['data']['id'])
        self.assertTrue(document.chemin_fichier.startswith('documents/L1/L1-CS/S1/L1-CS-MAT1/cours/'))
        self.assertTrue((Path(self.dossier_upload) / document.chemin_fichier).is_file())
        self.assertEqual(list((Path(self.dossier_upload) / 'temp').iterdir()), [])
        self.assertEqual(document.nom_fichier, 'cours.pdf')
        self.assertEqual(document.type_mime, 'application/pdf')
        self.assertEqual(response.data['data']['matieres'][0]['code'], 'L1-CS-MAT1')
        self.assertTrue(AuditLog.objects.filter(action='DOCUMENT_UPLOAD', ressource_id=str(document.pk)).exists())

    def test_depot_plusieurs_matieres(self):
        self.affecter(self.professeur, self.autre_matiere)

        response = self.deposer(matiere_ids=f'[{self.matiere.pk}, {self.autre_matiere.pk}]')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(
            set(DocumentMatiere.objects.filter(document_id=response.data['data']['id']).values_list('matiere_id', flat=True)),
            {self.matiere.pk, self.autre_matiere.pk},
        )

    def test_depot_metadonnees_explicites(self):
        response = self.deposer(matiere_id=self.matiere.pk, semestre='S2', categorie='tp')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        document = Document.objects.get(pk=response.data['data']['id'])
        self.assertTrue(document.chemin_fichier.startswith('documents/L1/L1-CS/S2/L1-CS-MAT1/tp/'))

    def test_depot_sans_matiere(self):
        response = self.deposer()

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['details'][0]['message'], 'Au moins une matière est requise pour les documents non-PFE')

    def test_depot_matiere_supprimee(self):
        self.autre_matiere.is_deleted = True
        self.autre_matiere.save()

        response = self.deposer(matiere_ids=f'[{self.autre_matiere.pk}]')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn(str(self.autre_matiere.pk), response.data['details'][0]['message'])

    def test_depot_matiere_non_affectee(self):
        response = self.deposer(matiere_id=self.autre_matiere.pk)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Document.objects.exists())

    def test_depot_refuse_aux_etudiants(self):
        self.authentifier(self.etudiant)
        response = self.deposer(matiere_id=self.matiere.pk)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_depot_sans_fichier(self):
        response = self.client.post('/api/documents/', {
            'titre': 'Chapitre 1', 'categorie': 'cours', 'matiere_id': self.matiere.pk,
        })

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Upload Error')
        self.assertEqual(response.data['message'], 'Aucun fichier fourni')

    def test_depot_champ_inattendu(self):
        response = self.client.post('/api/documents/', {
            'titre': 'Chapitre 1', 'categorie': 'cours', 'matiere_id': self.matiere.pk,
            'fichier': fichier_pdf(),
        })
        self.assertEqual(response.data['message'], "Champ de fichier inattendu. Utilisez 'document'")

    def test_depot_extension_refusee(self):
        response = self.deposer(matiere_id=self.matiere.pk, document=fichier_pdf(nom='notes.txt'))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('.txt', response.data['message'])
        self.assertFalse(Document.objects.exists())

    @override_settings(MAX_FILE_SIZE=10)
    def test_depot_fichier_trop_volumineux(self):
        response = self.deposer(matiere_id=self.matiere.pk)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Fichier trop volumineux', response.data['message'])

    def test_depot_pfe_par_admin(self):
        niveau = self.creer_niveau('L3', ordre=3)
        self.authentifier(self.creer_admin())

        response = self.client.post('/api/documents/pfe/', {
            'annee_diplome': 2024,
            'filiere_diplome': 'Sciences informatiques',
            'titre_projet': 'Plateforme de partage de cours',
            'resume': 'Conception et réalisation',
            'mots_cles': 'django, archivage, ',
            'niveau': niveau.nom,
            'filiere': 'L3-CS',
            'semestre': 'S6',
            'document': fichier_pdf('memoire.pdf'),
        })

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['titre'], 'Plateforme de partage de cours')
        self.assertEqual(data['pfe']['mots_cles'], ['django', 'archivage'])
        self.assertTrue(Document.objects.get(pk=data['id']).chemin_fichier.startswith('documents/L3/L3-CS/S6/pfe/'))

    def test_depot_pfe_annee_invalide(self):
        self.authentifier(self.creer_admin())

        response = self.client.post('/api/documents/pfe/', {
            'annee_diplome': 1990,
            'filiere_diplome': 'Sciences informatiques',
            'titre_projet': 'Projet',
            'resume': 'Résumé',
            'niveau': 'L3', 'filiere': 'L3-CS', 'semestre': 'S6',
            'document': fichier_pdf('memoire.pdf'),
        })

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['details'][0]['field'], 'annee_diplome')

    def test_depot_pfe_refuse_aux_professeurs(self):
        response = self.client.post('/api/documents/pfe/', {'document': fichier_pdf()})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ConsultationDocumentsTests(StockageTemporaireMixin, DonneesTestMixin, APITestCase):

    @classmethod
    def setUpTestData(cls):
        cls.creer_structure()
        cls.professeur = cls.creer_professeur()
        cls.affecter(cls.professeur, cls.matiere)
        cls.etudiant = cls.creer_etudiant(cls.filiere)
        cls.document = cls.creer_document(cls.professeur, cls.matiere, description='Introduction')

        autre_filiere = cls.creer_filiere(cls.niveau, code='L1-SE', nom='Electronique')
        cls.document_autre_filiere = cls.creer_document(
            cls.professeur, cls.creer_matiere(autre_filiere, cls.semestre, code='L1-SE-MAT1'), titre='Circuits'
        )

        niveau_l3 = cls.creer_niveau('L3', ordre=3)
        cls.etudiant_l3 = cls.creer_etudiant(
            cls.creer_filiere(niveau_l3, code='L3-CS'), email='etudiant.l3@isi.tn'
        )
        cls.pfe = cls.creer_document(cls.creer_admin(), categorie='pfe', titre='Mémoire')

    def setUp(self):
        super().setUp()
        cache.clear()

    def test_liste_etudiant_limitee_a_sa_filiere(self):
        self.authentifier(self.etudiant)

        response = self.client.get('/api/documents/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([d['id'] for d in response.data['data']], [self.document.pk])
        self.assertEqual(response.data['pagination']['total'], 1)

    def test_liste_exclut_supprimes_et_corrections(self):
        Document.objects.filter(pk=self.document.pk).update(is_deleted=True)
        self.creer_document(self.professeur, self.matiere, titre='Correction', correction_de=self.document_autre_filiere)
        self.authentifier(self.professeur)

        response = self.client.get('/api/documents/')

        titres = {d['titre'] for d in response.data['data']}
        self.assertEqual(titres, {'Circuits', 'Mémoire'})

    def test_liste_filtres(self):
        self.authentifier(self.professeur)

        self.assertEqual(self.client.get('/api/documents/', {'search': 'intro'}).data['pagination']['total'], 1)
        self.assertEqual(self.client.get('/api/documents/', {'categorie': 'pfe'}).data['data'][0]['id'], self.pfe.pk)
        self.assertEqual(
            self.client.get('/api/documents/', {'matiere_id': self.matiere.pk}).data['data'][0]['id'], self.document.pk
        )

    def test_liste_matiere_invalide(self):
        self.authentifier(self.professeur)

        response = self.client.get('/api/documents/', {'matiere_id': 'abc'})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['details'][0], {'field': 'matiere_id', 'message': 'Identifiant de matière invalide'})

    def test_liste_categorie_inconnue(self):
        self.authentifier(self.professeur)
        response = self.client.get('/api/documents/', {'categorie': 'memoire'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_recherche_trop_longue(self):
        self.authentifier(self.professeur)
        response = self.client.get('/api/documents/', {'search': 'x' * 101})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_detail_compte_une_vue(self):
        self.authentifier(self.etudiant)

        self.client.get(f'/api/documents/{self.document.pk}/')
        response = self.client.get(f'/api/documents/{self.document.pk}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.document.refresh_from_db()
        self.assertEqual(self.document.view_count, 1)
        self.assertEqual(AuditLog.objects.filter(action='DOCUMENT_VIEW').count(), 1)
        self.assertNotIn('pfe', response.data['data'])

    def test_detail_hors_filiere(self):
        self.authentifier(self.etudiant)
        response = self.client.get(f'/api/documents/{self.document_autre_filiere.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_detail_document_supprime(self):
        Document.objects.filter(pk=self.document.pk).update(is_deleted=True)
        self.authentifier(self.professeur)
        response = self.client.get(f'/api/documents/{self.document.pk}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_telechargement(self):
        fichier = Path(self.dossier_upload) / self.document.chemin_fichier
        fichier.parent.mkdir(parents=True)
        fichier.write_bytes(b'%PDF-1.4 chapitre')
        self.authentifier(self.etudiant)

        response = self.client.get(f'/api/documents/{self.document.pk}/download/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(b''.join(response.streaming_content), b'%PDF-1.4 chapitre')
        self.assertEqual(response['Content-Disposition'], "attachment; filename*=UTF-8''chapitre1.pdf")
        self.document.refresh_from_db()
        self.assertEqual(self.document.download_count, 1)
        response.close()

    def test_telechargement_fichier_absent(self):
        self.authentifier(self.etudiant)

        response = self.client.get(f'/api/documents/{self.document.pk}/download/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Fichier non trouvé sur le serveur')

    def test_pfe_refuses_hors_niveau_terminal(self):
        self.authentifier(self.etudiant)
        response = self.client.get('/api/documents/pfe/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_pfe_etudiant_l3(self):
        self.authentifier(self.etudiant_l3)

        response = self.client.get('/api/documents/pfe/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([d['id'] for d in response.data['data']], [self.pfe.pk])

    def test_pfe_filtre_par_annee(self):
        DocumentPFE.objects.create(
            document=self.pfe, annee_diplome=2024, filiere_diplome='Génie Logiciel',
            titre_projet="Plateforme d'archives", resume='Résumé',
        )
        self.authentifier(self.etudiant_l3)

        retenu = self.client.get('/api/documents/pfe/', {'annee_diplome': 2024, 'filiere_diplome': 'logiciel'})
        ecarte = self.client.get('/api/documents/pfe/', {'annee_diplome': 2023})

        self.assertEqual([d['id'] for d in retenu.data['data']], [self.pfe.pk])
        self.assertEqual(ecarte.data['pagination']['total'], 0)

    def test_pfe_annee_invalide(self):
        self.authentifier(self.etudiant_l3)

        response = self.client.get('/api/documents/pfe/', {'annee_diplome': 'abc'})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['details'][0]['field'], 'annee_diplome')

    def test_documents_d_un_professeur(self):
        self.authentifier(self.professeur)
        response = self.client.get(f'/api/documents/professor/{self.professeur.pk}/')
        self.assertEqual(response.data['pagination']['total'], 2)

    def test_documents_d_un_autre_professeur(self):
        self.authentifier(self.creer_professeur(email='prof2@isi.tn'))
        response = self.client.get(f'/api/documents/professor/{self.professeur.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ModificationDocumentTests(StockageTemporaireMixin, DonneesTestMixin, APITestCase):

    @classmethod
    def setUpTestData(cls):
        cls.creer_structure()
        cls.professeur = cls.creer_professeur()
        cls.affecter(cls.professeur, cls.matiere)
        cls.autre_professeur = cls.creer_professeur(email='prof2@isi.tn')
        cls.document = cls.creer_document(cls.professeur, cls.matiere)

    def test_correction_rangee_avec_le_document(self):
        self.authentifier(self.professeur)

        response = self.client.post(f'/api/documents/{self.document.pk}/correction/', {'document': fichier_pdf('corrige.pdf')})

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        correction = Document.objects.get(pk=response.data['data']['id'])
        self.assertEqual(correction.correction_de, self.document)
        self.assertEqual(correction.titre, 'Correction - Chapitre 1')
        self.assertTrue(correction.chemin_fichier.startswith('documents/L1/L1-CS/S1/L1-CS-MAT1/cours/corrections/'))

        detail = self.client.get(f'/api/documents/{self.document.pk}/')
        self.assertEqual(detail.data['data']['correction']['id'], correction.pk)

    def test_une_seule_correction(self):
        self.creer_document(self.professeur, self.matiere, titre='Correction', correction_de=self.document)
        self.authentifier(self.professeur)

        response = self.client.post(f'/api/documents/{self.document.pk}/correction/', {'document': fichier_pdf()})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Une correction existe déjà pour ce document')

    def test_correction_par_professeur_non_affecte(self):
        self.authentifier(self.autre_professeur)
        response = self.client.post(f'/api/documents/{self.document.pk}/correction/', {'document': fichier_pdf()})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_modification_par_le_proprietaire(self):
        nouvelle = self.creer_matiere(self.filiere, self.semestre, code='L1-CS-MAT2', nom='Analyse')
        self.authentifier(self.professeur)

        response = self.client.put(f'/api/documents/{self.document.pk}/', {
            'titre': 'Chapitre 1 (révisé)', 'matiere_id': nouvelle.pk,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.document.refresh_from_db()
        self.assertEqual(self.document.titre, 'Chapitre 1 (révisé)')
        self.assertEqual(list(self.document.matieres.all()), [nouvelle])

    def test_modification_par_un_autre_professeur(self):
        self.authentifier(self.autre_professeur)
        response = self.client.put(f'/api/documents/{self.document.pk}/', {'titre': 'Piraté'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_suppression_logique(self):
        self.authentifier(self.professeur)

        response = self.client.delete(f'/api/documents/{self.document.pk}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.document.refresh_from_db()
        self.assertTrue(self.document.is_deleted)
        self.assertEqual(self.document.deleted_by, self.professeur)
        self.assertIsNotNone(self.document.deleted_at)
        self.assertEqual(self.client.get('/api/documents/').data['pagination']['total'], 0)
