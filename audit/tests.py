from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.test import RequestFactory
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from isi_archive.outils_tests import DonneesTestMixin
from .models import AuditLog
from . import services


class JournalisationTests(DonneesTestMixin, APITestCase):

    @classmethod
    def setUpTestData(cls):
        cls.admin = cls.creer_admin()

    def test_journaliser_avec_requete(self):
        request = RequestFactory().get('/', HTTP_X_FORWARDED_FOR='10.0.0.5, 172.16.0.1', HTTP_USER_AGENT='Firefox')

        journal = services.journaliser(self.admin, 'LOGIN', 'auth', self.admin.pk, {'email': self.admin.email}, request)

        self.assertEqual(journal.adresse_ip, '10.0.0.5')
        self.assertEqual(journal.user_agent, 'Firefox')
        self.assertEqual(journal.ressource_id, str(self.admin.pk))
        self.assertEqual(journal.details, {'email': self.admin.email})

    def test_journaliser_sans_requete(self):
        journal = services.journaliser(None, 'PAGE_ACCESS', 'trash')

        self.assertIsNone(journal.utilisateur)
        self.assertIsNone(journal.adresse_ip)
        self.assertEqual(journal.details, {})

    def test_journaliser_details_non_serialisables(self):
        journal = services.journaliser(self.admin, 'DOCUMENT_VIEW', 'document', 1, {'objet': object()})

        self.assertIsNone(journal)
        self.assertFalse(AuditLog.objects.exists())

    def test_nettoyage_retention_nulle(self):
        ancien = AuditLog.objects.create(action='LOGIN', ressource='auth')
        AuditLog.objects.filter(pk=ancien.pk).update(date_creation=timezone.now() - timedelta(days=10))

        self.assertEqual(services.nettoyer_anciens_journaux(0), 1)

    def test_nettoyage(self):
        ancien = AuditLog.objects.create(action='LOGIN', ressource='auth')
        AuditLog.objects.filter(pk=ancien.pk).update(date_creation=timezone.now() - timedelta(days=400))
        AuditLog.objects.create(action='LOGIN', ressource='auth')

        self.assertEqual(services.nettoyer_anciens_journaux(365), 1)
        self.assertEqual(AuditLog.objects.count(), 1)

    def test_commande_nettoyage(self):
        ancien = AuditLog.objects.create(action='LOGOUT', ressource='auth')
        AuditLog.objects.filter(pk=ancien.pk).update(date_creation=timezone.now() - timedelta(days=40))
        sortie = StringIO()

        call_command('nettoyer_journaux', '--jours', '30', stdout=sortie)

        self.assertFalse(AuditLog.objects.exists())
        self.assertIn('1 entrée(s)', sortie.getvalue())


class AuditApiTests(DonneesTestMixin, APITestCase):

    @classmethod
    def setUpTestData(cls):
        cls.creer_structure()
        cls.admin = cls.creer_admin()
        cls.etudiant = cls.creer_etudiant(cls.filiere, nom='Trabelsi')
        services.journaliser(cls.etudiant, 'DOCUMENT_VIEW', 'document', 1)
        services.journaliser(cls.etudiant, 'DOCUMENT_VIEW', 'document', 2)
        services.journaliser(cls.etudiant, 'DOCUMENT_DOWNLOAD', 'document', 1)
        services.journaliser(cls.admin, 'USER_CREATE', 'user', cls.etudiant.pk)
        hier = AuditLog.objects.create(utilisateur=cls.admin, action='LOGIN', ressource='auth')
        AuditLog.objects.filter(pk=hier.pk).update(date_creation=timezone.now() - timedelta(days=1))

    def setUp(self):
        self.authentifier(self.admin)

    def test_reserve_aux_admins(self):
        self.authentifier(self.etudiant)
        response = self.client.get('/api/audit/logs/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_journaux_pagines(self):
        response = self.client.get('/api/audit/logs/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pagination']['total'], 5)
        self.assertEqual(response.data['pagination']['limit'], 50)

    def test_filtres(self):
        par_action = self.client.get('/api/audit/logs/', {'action': 'DOCUMENT_VIEW'})
        par_utilisateur = self.client.get('/api/audit/logs/', {'user_id': self.admin.pk})
        par_recherche = self.client.get('/api/audit/logs/', {'search': 'trabelsi'})

        self.assertEqual(par_action.data['pagination']['total'], 2)
        self.assertEqual(par_utilisateur.data['pagination']['total'], 2)
        self.assertEqual(par_recherche.data['pagination']['total'], 3)

    def test_filtre_action_inconnue(self):
        response = self.client.get('/api/audit/logs/', {'action': 'HACK'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filtre_dates_inversees(self):
        response = self.client.get('/api/audit/logs/', {
            'start_date': '2025-02-01T00:00:00Z', 'end_date': '2025-01-01T00:00:00Z',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_activite_utilisateur(self):
        response = self.client.get(f'/api/audit/users/{self.etudiant.pk}/activity/', {'days': 7})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['period_days'], 7)
        self.assertEqual(data['summary'][0], {'action': 'DOCUMENT_VIEW', 'count': 2})
        self.assertEqual(len(data['recent']), 3)

    def test_activite_periode_invalide(self):
        response = self.client.get(f'/api/audit/users/{self.etudiant.pk}/activity/', {'days': 400})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_statistiques(self):
        response = self.client.get('/api/audit/stats/')

        data = response.data['data']
        self.assertEqual(data['total'], 5)
        self.assertEqual(data['this_week'], 5)
        self.assertEqual(data['top_actions'][0], {'action': 'DOCUMENT_VIEW', 'count': 2})
        self.assertEqual(data['top_users'][0]['user']['id'], self.etudiant.pk)

    def test_actions_disponibles(self):
        response = self.client.get('/api/audit/actions/')
        self.assertIn({'value': 'LOGIN', 'label': 'Connexion'}, response.data['data'])

    def test_nettoyage_retention_minimale(self):
        response = self.client.post('/api/audit/cleanup/', {'retention_days': 10})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_nettoyage(self):
        AuditLog.objects.filter(action='LOGIN').update(date_creation=timezone.now() - timedelta(days=100))

        response = self.client.post('/api/audit/cleanup/', {'retention_days': 90})

        self.assertEqual(response.data['data'], {'deleted': 1, 'retention_days': 90})
