from datetime import datetime, timedelta

from django.test import SimpleTestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from audit.models import AuditLog
from commentaires.models import Commentaire
from isi_archive.outils_tests import DonneesTestMixin
from .services import bornes_mois, croissance, serie_apprentissage


class CroissanceTests(SimpleTestCase):

    def test_evolution(self):
        self.assertEqual(croissance(15, 10), '50.0%')
        self.assertEqual(croissance(5, 10), '-50.0%')
        self.assertEqual(croissance(1, 3), '-66.7%')

    def test_sans_reference(self):
        self.assertEqual(croissance(4, 0), '100%')
        self.assertEqual(croissance(0, 0), '0%')

    def test_bornes_janvier(self):
        maintenant = timezone.make_aware(datetime(2025, 1, 15, 10, 30))
        debut, debut_precedent = bornes_mois(maintenant)
        self.assertEqual((debut.year, debut.month, debut.day), (2025, 1, 1))
        self.assertEqual((debut_precedent.year, debut_precedent.month, debut_precedent.day), (2024, 12, 1))


class SerieApprentissageTests(DonneesTestMixin, APITestCase):

    @classmethod
    def setUpTestData(cls):
        cls.creer_structure()
        cls.etudiant = cls.creer_etudiant(cls.filiere)

    def activite(self, jours, action='DOCUMENT_VIEW'):
        journal = AuditLog.objects.create(utilisateur=self.etudiant, action=action, ressource='document', ressource_id='1')
        AuditLog.objects.filter(pk=journal.pk).update(date_creation=timezone.now() - timedelta(days=jours))

    def test_sans_activite(self):
        self.assertEqual(serie_apprentissage(self.etudiant), 0)

    def test_jours_consecutifs(self):
        self.activite(0)
        self.activite(1, 'DOCUMENT_DOWNLOAD')
        self.activite(2)
        self.activite(4)

        self.assertEqual(serie_apprentissage(self.etudiant), 3)

    def test_serie_depuis_hier(self):
        self.activite(1)
        self.activite(2)
        self.assertEqual(serie_apprentissage(self.etudiant), 2)

    def test_serie_interrompue(self):
        self.activite(2)
        self.activite(3)
        self.assertEqual(serie_apprentissage(self.etudiant), 0)

    def test_autres_actions_ignorees(self):
        self.activite(0, 'LOGIN')
        self.assertEqual(serie_apprentissage(self.etudiant), 0)


class DashboardsTests(DonneesTestMixin, APITestCase):

    @classmethod
    def setUpTestData(cls):
        cls.creer_structure()
        cls.admin = cls.creer_admin()
        cls.professeur = cls.creer_professeur()
        cls.affecter(cls.professeur, cls.matiere)
        cls.etudiant = cls.creer_etudiant(cls.filiere)
        cls.document = cls.creer_document(cls.professeur, cls.matiere, download_count=3)
        cls.creer_document(cls.professeur, cls.matiere, titre='Supprimé', is_deleted=True)
        for action in ('DOCUMENT_VIEW', 'DOCUMENT_VIEW', 'DOCUMENT_DOWNLOAD'):
            AuditLog.objects.create(
                utilisateur=cls.etudiant, action=action, ressource='document', ressource_id=str(cls.document.pk)
            )
        Commentaire.objects.create(contenu='Question', document=cls.document, auteur=cls.etudiant)

    def test_dashboard_admin(self):
        self.authentifier(self.admin)

        response = self.client.get('/api/dashboard/admin/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        stats = response.data['data']['stats']
        self.assertEqual(stats['total_users'], 3)
        self.assertEqual(stats['total_documents'], 1)
        self.assertEqual(stats['deleted_documents'], 1)
        self.assertEqual(stats['total_matieres'], 1)
        self.assertEqual(stats['user_growth'], '100%')
        self.assertEqual(len(response.data['data']['charts']['role_distribution']), 3)
        self.assertEqual(response.data['data']['top_active_users'][0]['id'], self.etudiant.pk)

    def test_dashboard_admin_refuse_au_professeur(self):
        self.authentifier(self.professeur)

        response = self.client.get('/api/dashboard/admin/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], 'Seuls les administrateurs peuvent accéder à ce dashboard')

    def test_dashboard_professeur(self):
        self.authentifier(self.professeur)

        response = self.client.get('/api/dashboard/professor/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['stats']['my_documents'], 1)
        self.assertEqual(data['stats']['assigned_matieres'], 1)
        self.assertEqual(data['stats']['total_views'], 2)
        self.assertEqual(data['stats']['total_downloads'], 1)
        self.assertEqual(data['stats']['recent_comments'], 1)
        self.assertEqual(data['popular_documents'][0]['download_count'], 3)
        self.assertEqual(data['recent_activity'][0]['document_title'], 'Chapitre 1')

    def test_dashboard_etudiant(self):
        self.authentifier(self.etudiant)

        response = self.client.get('/api/dashboard/student/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['stats']['documents_viewed'], 2)
        self.assertEqual(data['stats']['documents_downloaded'], 1)
        self.assertEqual(data['stats']['learning_streak'], 1)
        self.assertEqual(data['favorite_documents'][0]['view_count'], 2)
        self.assertEqual(len(data['recently_viewed']), 1)
        self.assertEqual([d['id'] for d in data['recommended_documents']], [self.document.pk])
        self.assertEqual(data['learning_activity']['total_activity'], 3)

    def test_dashboard_etudiant_refuse_a_l_admin(self):
        self.authentifier(self.admin)
        response = self.client.get('/api/dashboard/student/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
