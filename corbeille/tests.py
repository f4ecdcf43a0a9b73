from datetime import timedelta
from io import StringIO
from pathlib import Path

from django.core.management import call_command
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from audit.models import AuditLog
from documents.models import Document
from isi_archive.outils_tests import DonneesTestMixin, StockageTemporaireMixin
from . import services


class DonneesCorbeilleMixin(DonneesTestMixin):

    @classmethod
    def setUpTestData(cls):
        cls.creer_structure()
        cls.admin = cls.creer_admin()
        cls.professeur = cls.creer_professeur()
        cls.autre_professeur = cls.creer_professeur(email='prof2@isi.tn')

    @classmethod
    def document_supprime(cls, auteur, jours, titre='Ancien cours', **kwargs):
        document = cls.creer_document(auteur, cls.matiere, titre=titre, **kwargs)
        document.is_deleted = True
        document.deleted_at = timezone.now() - timedelta(days=jours)
        document.deleted_by = auteur
        document.save()
        return document


class CorbeilleServicesTests(DonneesCorbeilleMixin, APITestCase):

    def test_jours_avant_suppression(self):
        document = self.document_supprime(self.professeur, 10)
        self.assertEqual(services.jours_avant_suppression(document), 20)

    def test_jours_avant_suppression_expiree(self):
        document = self.document_supprime(self.professeur, 45)
        self.assertEqual(services.jours_avant_suppression(document), 0)

    def test_corbeille_limitee_a_la_retention(self):
        recent = self.document_supprime(self.professeur, 2)
        self.document_supprime(self.professeur, 31, titre='Trop ancien')

        self.assertEqual(list(services.documents_en_corbeille(self.professeur)), [recent])

    def test_documents_expirant(self):
        proche = self.document_supprime(self.professeur, 25)
        self.document_supprime(self.professeur, 10)

        self.assertEqual(list(services.documents_expirant(self.professeur, 7)), [proche])
        self.assertEqual(services.documents_expirant(self.professeur, 30).count(), 2)

    def test_statistiques(self):
        self.document_supprime(self.professeur, 1)
        self.document_supprime(self.professeur, 26, categorie='td')

        stats = services.statistiques(self.professeur)

        self.assertEqual(stats['total_deleted'], 2)
        self.assertEqual(stats['expiring_soon'], 1)
        self.assertEqual(stats['recent_deletions'], 1)
        self.assertEqual(stats['by_category'], {'cours': 1, 'td': 1})


class CorbeilleApiTests(StockageTemporaireMixin, DonneesCorbeilleMixin, APITestCase):

    def test_liste_du_professeur(self):
        document = self.document_supprime(self.professeur, 10)
        self.document_supprime(self.autre_professeur, 10)
        self.authentifier(self.professeur)

        response = self.client.get('/api/trash/documents/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([d['id'] for d in response.data['data']], [document.pk])
        self.assertEqual(response.data['data'][0]['days_until_permanent_deletion'], 20)
        self.assertEqual(response.data['data'][0]['deleted_by']['id'], self.professeur.pk)
        self.assertTrue(AuditLog.objects.filter(action='PAGE_ACCESS', ressource='trash').exists())

    def test_liste_admin_complete(self):
        self.document_supprime(self.professeur, 10)
        self.document_supprime(self.autre_professeur, 10)
        self.authentifier(self.admin)

        response = self.client.get('/api/trash/documents/')

        self.assertEqual(response.data['pagination']['total'], 2)

    def test_restauration(self):
        document = self.document_supprime(self.professeur, 10)
        self.authentifier(self.professeur)

        response = self.client.post(f'/api/trash/documents/{document.pk}/restore/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        document.refresh_from_db()
        self.assertFalse(document.is_deleted)
        self.assertIsNone(document.deleted_at)
        self.assertIsNone(document.deleted_by)
        self.assertTrue(AuditLog.objects.filter(action='DOCUMENT_RESTORE', ressource_id=str(document.pk)).exists())

    def test_restauration_par_un_autre_professeur(self):
        document = self.document_supprime(self.professeur, 10)
        self.authentifier(self.autre_professeur)

        response = self.client.post(f'/api/trash/documents/{document.pk}/restore/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], 'Permissions insuffisantes')

    def test_restauration_document_actif(self):
        document = self.creer_document(self.professeur, self.matiere)
        self.authentifier(self.professeur)

        response = self.client.post(f'/api/trash/documents/{document.pk}/restore/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_restauration_apres_expiration(self):
        document = self.document_supprime(self.professeur, 31)
        self.authentifier(self.professeur)

        response = self.client.post(f'/api/trash/documents/{document.pk}/restore/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('30 jours', response.data['message'])

    def test_restauration_correction_deja_remplacee(self):
        parent = self.creer_document(self.professeur, self.matiere)
        ancienne = self.document_supprime(self.professeur, 2, titre='Correction v1', correction_de=parent)
        self.creer_document(self.professeur, self.matiere, titre='Correction v2', correction_de=parent)
        self.authentifier(self.professeur)

        response = self.client.post(f'/api/trash/documents/{ancienne.pk}/restore/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Une correction existe déjà pour ce document')
        self.assertEqual(parent.corrections.filter(is_deleted=False).count(), 1)

    def test_restauration_correction_parent_supprime(self):
        parent = self.document_supprime(self.professeur, 2, titre='Chapitre 1')
        correction = self.document_supprime(self.professeur, 2, titre='Correction', correction_de=parent)
        self.authentifier(self.professeur)

        response = self.client.post(f'/api/trash/documents/{correction.pk}/restore/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        correction.refresh_from_db()
        self.assertTrue(correction.is_deleted)

    def test_restauration_correction(self):
        parent = self.creer_document(self.professeur, self.matiere)
        correction = self.document_supprime(self.professeur, 2, titre='Correction', correction_de=parent)
        self.authentifier(self.professeur)

        response = self.client.post(f'/api/trash/documents/{correction.pk}/restore/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(parent.corrections.filter(is_deleted=False).count(), 1)

    def test_documents_expirant(self):
        document = self.document_supprime(self.professeur, 27)
        self.document_supprime(self.professeur, 5)
        self.authentifier(self.professeur)

        response = self.client.get('/api/trash/documents/expiring/', {'days': 5})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([d['id'] for d in response.data['data']], [document.pk])

    def test_documents_expirant_jours_invalides(self):
        self.authentifier(self.professeur)
        self.assertEqual(
            self.client.get('/api/trash/documents/expiring/', {'days': 0}).status_code, status.HTTP_400_BAD_REQUEST
        )
        self.assertEqual(
            self.client.get('/api/trash/documents/expiring/', {'days': 'abc'}).status_code, status.HTTP_400_BAD_REQUEST
        )

    def test_suppression_definitive(self):
        document = self.document_supprime(self.professeur, 3, chemin_fichier='documents/L1/cours.pdf')
        correction = self.creer_document(
            self.professeur, self.matiere, correction_de=document, chemin_fichier='documents/L1/corrections/c.pdf'
        )
        for chemin in (document.chemin_fichier, correction.chemin_fichier):
            fichier = Path(self.dossier_upload) / chemin
            fichier.parent.mkdir(parents=True, exist_ok=True)
            fichier.write_bytes(b'%PDF')
        self.authentifier(self.admin)

        response = self.client.delete(f'/api/trash/documents/{document.pk}/permanent/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Document.objects.filter(pk__in=[document.pk, correction.pk]).exists())
        self.assertFalse((Path(self.dossier_upload) / 'documents/L1/cours.pdf').exists())
        self.assertFalse((Path(self.dossier_upload) / 'documents/L1/corrections/c.pdf').exists())

    def test_suppression_definitive_reservee_aux_admins(self):
        document = self.document_supprime(self.professeur, 3)
        self.authentifier(self.professeur)

        response = self.client.delete(f'/api/trash/documents/{document.pk}/permanent/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Document.objects.filter(pk=document.pk).exists())

    def test_suppression_definitive_document_actif(self):
        document = self.creer_document(self.professeur, self.matiere)
        self.authentifier(self.admin)
        response = self.client.delete(f'/api/trash/documents/{document.pk}/permanent/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_statistiques(self):
        self.document_supprime(self.professeur, 1)
        self.authentifier(self.professeur)

        response = self.client.get('/api/trash/stats/')

        self.assertEqual(response.data['data']['total_deleted'], 1)


class PurgeCorbeilleTests(StockageTemporaireMixin, DonneesCorbeilleMixin, APITestCase):

    def test_purge(self):
        ancien = self.document_supprime(self.professeur, 40)
        recent = self.document_supprime(self.professeur, 5)

        call_command('purger_corbeille', stdout=StringIO())

        self.assertFalse(Document.objects.filter(pk=ancien.pk).exists())
        self.assertTrue(Document.objects.filter(pk=recent.pk).exists())

    def test_purge_dry_run(self):
        ancien = self.document_supprime(self.professeur, 40)
        sortie = StringIO()

        call_command('purger_corbeille', '--dry-run', stdout=sortie)

        self.assertTrue(Document.objects.filter(pk=ancien.pk).exists())
        self.assertIn('Ancien cours', sortie.getvalue())

    def test_purge_anciennete_personnalisee(self):
        document = self.document_supprime(self.professeur, 5)
        call_command('purger_corbeille', '--jours', '3', stdout=StringIO())
        self.assertFalse(Document.objects.filter(pk=document.pk).exists())
