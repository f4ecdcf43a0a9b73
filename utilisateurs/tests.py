from django.core import mail
from django.test import SimpleTestCase
from rest_framework import status
from rest_framework.test import APITestCase

from audit.models import AuditLog
from isi_archive.outils_tests import DonneesTestMixin, MOT_DE_PASSE
from .models import Utilisateur
from .tokens import creer_access_token, creer_refresh_token, decoder_access_token
from .validators import verifier_force_mot_de_passe


class ForceMotDePasseTests(SimpleTestCase):

    def test_mot_de_passe_robuste(self):
        self.assertEqual(verifier_force_mot_de_passe('Archive#Test24'), [])

    def test_regles_non_respectees(self):
        erreurs = verifier_force_mot_de_passe('abc')
        self.assertIn('Le mot de passe doit contenir au moins 8 caractères', erreurs)
        self.assertIn('Le mot de passe doit contenir au moins une lettre majuscule', erreurs)
        self.assertIn('Le mot de passe doit contenir au moins un chiffre', erreurs)

    def test_motif_courant_refuse(self):
        self.assertIn(
            'Le mot de passe ne doit pas contenir de motifs courants',
            verifier_force_mot_de_passe('Password#2024'),
        )


class AuthentificationTests(DonneesTestMixin, APITestCase):

    @classmethod
    def setUpTestData(cls):
        cls.creer_structure()
        cls.etudiant = cls.creer_etudiant(cls.filiere)

    def test_connexion_reussie(self):
        response = self.client.post('/api/auth/login/', {'email': 'ETUDIANT@isi.tn', 'password': MOT_DE_PASSE})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['user']['email'], 'etudiant@isi.tn')
        self.assertEqual(decoder_access_token(data['access_token'])['sub'], str(self.etudiant.pk))
        self.assertTrue(AuditLog.objects.filter(action='LOGIN', utilisateur=self.etudiant).exists())

    def test_connexion_mauvais_mot_de_passe(self):
        response = self.client.post('/api/auth/login/', {'email': 'etudiant@isi.tn', 'password': 'Faux#Passe99'})

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['message'], 'Email ou mot de passe incorrect')

    def test_connexion_compte_desactive(self):
        self.etudiant.is_active = False
        self.etudiant.save()

        response = self.client.post('/api/auth/login/', {'email': 'etudiant@isi.tn', 'password': MOT_DE_PASSE})

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'Compte utilisateur désactivé')

    def test_connexion_email_invalide(self):
        response = self.client.post('/api/auth/login/', {'email': 'pas-un-email', 'password': 'x'})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Validation Error')
        self.assertEqual(response.data['details'][0]['field'], 'email')

    def test_rafraichissement(self):
        response = self.client.post('/api/auth/refresh/', {'refresh_token': creer_refresh_token(self.etudiant)})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access_token', response.data['data'])
        self.assertIn('refresh_token', response.data['data'])

    def test_rafraichissement_avec_access_token_refuse(self):
        response = self.client.post('/api/auth/refresh/', {'refresh_token': creer_access_token(self.etudiant)})

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_deconnexion_globale_revoque_les_refresh_tokens(self):
        ancien = creer_refresh_token(self.etudiant)
        self.authentifier(self.etudiant)

        self.assertEqual(self.client.post('/api/auth/logout-all/').status_code, status.HTTP_200_OK)

        self.deconnecter()
        response = self.client.post('/api/auth/refresh/', {'refresh_token': ancien})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_deconnexion_revoque_le_refresh_token(self):
        connexion = self.client.post('/api/auth/login/', {'email': self.etudiant.email, 'password': MOT_DE_PASSE})
        tokens = connexion.data['data']
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access_token']}")

        self.assertEqual(self.client.post('/api/auth/logout/').status_code, status.HTTP_200_OK)

        self.deconnecter()
        response = self.client.post('/api/auth/refresh/', {'refresh_token': tokens['refresh_token']})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertTrue(AuditLog.objects.filter(action='LOGOUT', utilisateur=self.etudiant).exists())

    def test_profil_sans_token(self):
        response = self.client.get('/api/auth/profile/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_profil_token_invalide(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer nimportequoi')
        response = self.client.get('/api/auth/profile/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_mise_a_jour_profil(self):
        self.authentifier(self.etudiant)

        response = self.client.put('/api/auth/profile/', {'prenom': 'Amel', 'role': 'admin'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.etudiant.refresh_from_db()
        self.assertEqual(self.etudiant.prenom, 'Amel')
        self.assertEqual(self.etudiant.role, 'etudiant')

    def test_changement_mot_de_passe(self):
        self.authentifier(self.etudiant)

        response = self.client.post('/api/auth/change-password/', {
            'current_password': MOT_DE_PASSE,
            'new_password': 'Nouveau#Secret42',
        })

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.etudiant.refresh_from_db()
        self.assertTrue(self.etudiant.check_password('Nouveau#Secret42'))
        self.assertEqual(self.etudiant.token_version, 1)

    def test_changement_mot_de_passe_actuel_incorrect(self):
        self.authentifier(self.etudiant)

        response = self.client.post('/api/auth/change-password/', {
            'current_password': 'Mauvais#Passe1',
            'new_password': 'Nouveau#Secret42',
        })

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Mot de passe actuel incorrect')

    def test_mot_de_passe_oublie_email_inconnu(self):
        response = self.client.post('/api/auth/forgot-password/', {'email': 'inconnu@isi.tn'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 0)

    def test_reinitialisation_complete(self):
        self.client.post('/api/auth/forgot-password/', {'email': 'etudiant@isi.tn'})

        self.assertEqual(len(mail.outbox), 1)
        self.etudiant.refresh_from_db()
        self.assertIn(self.etudiant.reset_token, mail.outbox[0].body)

        response = self.client.post('/api/auth/reset-password/', {
            'token': self.etudiant.reset_token,
            'new_password': 'Retrouve#Acces7',
        })

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.etudiant.refresh_from_db()
        self.assertIsNone(self.etudiant.reset_token)
        self.assertTrue(self.etudiant.check_password('Retrouve#Acces7'))

    def test_reinitialisation_token_invalide(self):
        response = self.client.post('/api/auth/reset-password/', {
            'token': 'a' * 64,
            'new_password': 'Retrouve#Acces7',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class GestionUtilisateursTests(DonneesTestMixin, APITestCase):

    @classmethod
    def setUpTestData(cls):
        cls.creer_structure()
        cls.admin = cls.creer_admin()
        cls.etudiant = cls.creer_etudiant(cls.filiere)

    def setUp(self):
        self.authentifier(self.admin)

    def test_creation_etudiant(self):
        response = self.client.post('/api/users/', {
            'email': 'Nouveau@ISI.tn',
            'password': 'Bienvenue#2025',
            'prenom': 'Sami',
            'nom': 'Gharbi',
            'role': 'etudiant',
            'filiere_id': self.filiere.pk,
            'niveau_id': self.niveau.pk,
        })

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['user']['email'], 'nouveau@isi.tn')
        self.assertTrue(Utilisateur.objects.get(email='nouveau@isi.tn').check_password('Bienvenue#2025'))

    def test_creation_etudiant_sans_filiere(self):
        response = self.client.post('/api/users/', {
            'email': 'sans.filiere@isi.tn',
            'password': 'Bienvenue#2025',
            'prenom': 'Sami',
            'nom': 'Gharbi',
            'role': 'etudiant',
        })

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['details'][0]['field'], 'filiere_id')

    def test_creation_email_existant(self):
        response = self.client.post('/api/users/', {
            'email': 'ETUDIANT@isi.tn',
            'password': 'Bienvenue#2025',
            'prenom': 'Sami',
            'nom': 'Gharbi',
            'role': 'professeur',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_creation_mot_de_passe_faible(self):
        response = self.client.post('/api/users/', {
            'email': 'faible@isi.tn',
            'password': 'faible',
            'prenom': 'Sami',
            'nom': 'Gharbi',
            'role': 'professeur',
        })

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(all(d['field'] == 'password' for d in response.data['details']))

    def test_liste_reservee_aux_admins(self):
        self.authentifier(self.etudiant)
        response = self.client.get('/api/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_liste_filtree_par_role(self):
        response = self.client.get('/api/users/', {'role': 'etudiant'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pagination']['total'], 1)
        self.assertEqual(response.data['pagination']['limit'], 10)

    def test_etudiant_consulte_son_compte(self):
        self.authentifier(self.etudiant)
        response = self.client.get(f'/api/users/{self.etudiant.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_etudiant_ne_consulte_pas_un_autre_compte(self):
        self.authentifier(self.etudiant)
        response = self.client.get(f'/api/users/{self.admin.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_etudiant_ne_change_pas_son_role(self):
        self.authentifier(self.etudiant)
        response = self.client.put(f'/api/users/{self.etudiant.pk}/', {'role': 'admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_suppression_de_soi_refusee(self):
        response = self.client.delete(f'/api/users/{self.admin.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Self Deletion Not Allowed')

    def test_suppression_admin_inactif(self):
        autre = self.creer_admin(email='direction@isi.tn')
        self.authentifier(autre)
        self.admin.is_active = False
        self.admin.save()

        response = self.client.delete(f'/api/users/{self.admin.pk}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Utilisateur.objects.filter(pk=self.admin.pk).exists())

    def test_suppression_utilisateur(self):
        response = self.client.delete(f'/api/users/{self.etudiant.pk}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(AuditLog.objects.filter(action='USER_DELETE', ressource_id=str(self.etudiant.pk)).exists())

    def test_bascule_statut(self):
        response = self.client.patch(f'/api/users/{self.etudiant.pk}/toggle-status/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.etudiant.refresh_from_db()
        self.assertFalse(self.etudiant.is_active)
        self.assertEqual(self.etudiant.token_version, 1)

    def test_mise_a_jour_groupee(self):
        professeur = self.creer_professeur()

        response = self.client.put('/api/users/bulk-update/', {
            'user_ids': [self.etudiant.pk, professeur.pk, 999999],
            'update_data': {'is_active': False},
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']['updated']), 2)
        self.assertEqual(response.data['data']['errors'][0]['user_id'], 999999)

    def test_mise_a_jour_groupee_sans_soi(self):
        response = self.client.put('/api/users/bulk-update/', {
            'user_ids': [self.admin.pk],
            'update_data': {'is_active': False},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_statistiques(self):
        response = self.client.get('/api/users/stats/')

        stats = response.data['data']['stats']
        self.assertEqual(stats['total_users'], 2)
        self.assertEqual(stats['role_distribution'], {'admin': 1, 'etudiant': 1})
