from io import StringIO

from django.core.management import call_command
from rest_framework import status
from rest_framework.test import APITestCase

from isi_archive.outils_tests import DonneesTestMixin
from utilisateurs.models import Utilisateur
from .models import Niveau, Filiere, Semestre, Matiere, ProfesseurMatiere


class NiveauxTests(DonneesTestMixin, APITestCase):

    @classmethod
    def setUpTestData(cls):
        cls.creer_structure()
        cls.creer_filiere(cls.niveau, code='L1-IRS', nom='Systèmes informatiques')
        Filiere.objects.filter(code='L1-IRS').update(is_deleted=True)

    def test_liste_publique_sans_filieres_supprimees(self):
        response = self.client.get('/api/academic/niveaux/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        niveau = response.data['data'][0]
        self.assertEqual([f['code'] for f in niveau['filieres']], ['L1-CS'])
        self.assertEqual(niveau['semestres'][0]['nom'], 'S1')


class FilieresTests(DonneesTestMixin, APITestCase):

    @classmethod
    def setUpTestData(cls):
        cls.creer_structure()
        cls.admin = cls.creer_admin()
        cls.professeur = cls.creer_professeur()

    def test_creation_reservee_aux_admins(self):
        self.authentifier(self.professeur)
        response = self.client.post('/api/academic/filieres/', {
            'nom': 'Réseaux', 'code': 'L1-RES', 'niveau_id': self.niveau.pk,
        })
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_creation_code_normalise(self):
        self.authentifier(self.admin)

        response = self.client.post('/api/academic/filieres/', {
            'nom': 'Réseaux', 'code': ' l1-res ', 'niveau_id': self.niveau.pk,
        })

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['code'], 'L1-RES')

    def test_code_deja_utilise(self):
        self.authentifier(self.admin)
        response = self.client.post('/api/academic/filieres/', {
            'nom': 'Doublon', 'code': 'l1-cs', 'niveau_id': self.niveau.pk,
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_suppression_puis_restauration_avec_matieres(self):
        self.authentifier(self.admin)

        response = self.client.delete(f'/api/academic/filieres/{self.filiere.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.matiere.refresh_from_db()
        self.assertTrue(self.matiere.is_deleted)
        self.assertEqual(self.client.get('/api/academic/filieres/').data['data'], [])

        response = self.client.post(f'/api/academic/filieres/{self.filiere.pk}/restore/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.matiere.refresh_from_db()
        self.assertFalse(self.matiere.is_deleted)

    def test_suppression_refusee_avec_etudiants_actifs(self):
        self.creer_etudiant(self.filiere)
        self.authentifier(self.admin)

        response = self.client.delete(f'/api/academic/filieres/{self.filiere.pk}/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Filière utilisée')

    def test_inclure_supprimees_reserve_aux_admins(self):
        Filiere.objects.filter(pk=self.filiere.pk).update(is_deleted=True)

        self.assertEqual(len(self.client.get('/api/academic/filieres/', {'include_deleted': 'true'}).data['data']), 0)
        self.authentifier(self.admin)
        self.assertEqual(len(self.client.get('/api/academic/filieres/', {'include_deleted': 'true'}).data['data']), 1)


class MatieresTests(DonneesTestMixin, APITestCase):

    @classmethod
    def setUpTestData(cls):
        cls.creer_structure()
        cls.admin = cls.creer_admin()
        cls.professeur = cls.creer_professeur()
        cls.etudiant = cls.creer_etudiant(cls.filiere)
        niveau_l2 = cls.creer_niveau('L2', ordre=2)
        cls.semestre_l2 = cls.creer_semestre(niveau_l2, 'S3')

    def test_creation(self):
        self.authentifier(self.admin)

        response = self.client.post('/api/academic/matieres/', {
            'nom': 'Bases de données', 'code': 'l1-cs-mat2',
            'filiere_id': self.filiere.pk, 'semestre_id': self.semestre.pk,
        })

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['code'], 'L1-CS-MAT2')

    def test_semestre_hors_niveau(self):
        self.authentifier(self.admin)

        response = self.client.post('/api/academic/matieres/', {
            'nom': 'Bases de données', 'code': 'L1-CS-MAT2',
            'filiere_id': self.filiere.pk, 'semestre_id': self.semestre_l2.pk,
        })

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['details'][0]['field'], 'semestre_id')

    def test_code_d_une_matiere_supprimee(self):
        Matiere.objects.filter(pk=self.matiere.pk).update(is_deleted=True)
        self.authentifier(self.admin)

        response = self.client.post('/api/academic/matieres/', {
            'nom': 'Algorithmique', 'code': 'L1-CS-MAT1',
            'filiere_id': self.filiere.pk, 'semestre_id': self.semestre.pk,
        })

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('restaurez-la', response.data['details'][0]['message'])

    def test_filtre_par_filiere(self):
        autre = self.creer_filiere(self.niveau, code='L1-SE', nom='Electronique')
        self.creer_matiere(autre, self.semestre, code='L1-SE-MAT1', nom='Automatique')

        response = self.client.get('/api/academic/matieres/', {'filiere_id': self.filiere.pk})

        self.assertEqual([m['code'] for m in response.data['data']], ['L1-CS-MAT1'])

    def test_detail_etudiant_de_la_filiere(self):
        self.authentifier(self.etudiant)
        response = self.client.get(f'/api/academic/matieres/{self.matiere.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_detail_professeur_non_affecte(self):
        self.authentifier(self.professeur)
        response = self.client.get(f'/api/academic/matieres/{self.matiere.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_suppression_refusee_avec_documents(self):
        self.creer_document(self.professeur, self.matiere)
        self.authentifier(self.admin)

        response = self.client.delete(f'/api/academic/matieres/{self.matiere.pk}/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Matière utilisée')

    def test_restauration_refusee_si_filiere_supprimee(self):
        Matiere.objects.filter(pk=self.matiere.pk).update(is_deleted=True)
        Filiere.objects.filter(pk=self.filiere.pk).update(is_deleted=True)
        self.authentifier(self.admin)

        response = self.client.post(f'/api/academic/matieres/{self.matiere.pk}/restore/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_remplacement_des_professeurs(self):
        autre = self.creer_professeur(email='prof.tp@isi.tn')
        self.affecter(self.professeur, self.matiere, 'td')
        self.authentifier(self.admin)

        response = self.client.put(f'/api/academic/matieres/{self.matiere.pk}/professeurs/', {
            'professeurs': [
                {'professeur_id': self.professeur.pk, 'roles': ['cours']},
                {'professeur_id': autre.pk, 'roles': ['td', 'tp']},
            ]
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        roles = dict(ProfesseurMatiere.objects.filter(matiere=self.matiere).values_list('role', 'professeur_id'))
        self.assertEqual(roles, {'cours': self.professeur.pk, 'td': autre.pk, 'tp': autre.pk})

    def test_remplacement_role_en_double(self):
        autre = self.creer_professeur(email='prof.tp@isi.tn')
        self.authentifier(self.admin)

        response = self.client.put(f'/api/academic/matieres/{self.matiere.pk}/professeurs/', {
            'professeurs': [
                {'professeur_id': self.professeur.pk, 'roles': ['cours']},
                {'professeur_id': autre.pk, 'roles': ['cours']},
            ]
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AffectationsProfesseurTests(DonneesTestMixin, APITestCase):

    @classmethod
    def setUpTestData(cls):
        cls.creer_structure()
        cls.admin = cls.creer_admin()
        cls.professeur = cls.creer_professeur()
        cls.etudiant = cls.creer_etudiant(cls.filiere)

    def test_affectation(self):
        self.authentifier(self.admin)

        response = self.client.post(f'/api/academic/professeurs/{self.professeur.pk}/matieres/', {
            'matiere_id': self.matiere.pk, 'role': 'td',
        })

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['role'], 'td')

    def test_role_deja_attribue(self):
        autre = self.creer_professeur(email='prof.autre@isi.tn', nom='Mansour')
        self.affecter(autre, self.matiere, 'cours')
        self.authentifier(self.admin)

        response = self.client.post(f'/api/academic/professeurs/{self.professeur.pk}/matieres/', {
            'matiere_id': self.matiere.pk, 'role': 'cours',
        })

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Mansour', response.data['message'])

    def test_matieres_regroupees_par_roles(self):
        self.affecter(self.professeur, self.matiere, 'cours')
        self.affecter(self.professeur, self.matiere, 'tp')
        self.authentifier(self.professeur)

        response = self.client.get(f'/api/academic/professeurs/{self.professeur.pk}/matieres/')

        self.assertEqual(len(response.data['data']), 1)
        self.assertEqual(sorted(response.data['data'][0]['roles']), ['cours', 'tp'])

    def test_matieres_refusees_aux_etudiants(self):
        self.authentifier(self.etudiant)
        response = self.client.get(f'/api/academic/professeurs/{self.professeur.pk}/matieres/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_retrait_d_un_role(self):
        self.affecter(self.professeur, self.matiere, 'cours')
        self.affecter(self.professeur, self.matiere, 'td')
        self.authentifier(self.admin)

        response = self.client.delete(
            f'/api/academic/professeurs/{self.professeur.pk}/matieres/{self.matiere.pk}/?role=td'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(list(ProfesseurMatiere.objects.values_list('role', flat=True)), ['cours'])

    def test_retrait_affectation_inexistante(self):
        self.authentifier(self.admin)
        response = self.client.delete(
            f'/api/academic/professeurs/{self.professeur.pk}/matieres/{self.matiere.pk}/'
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class SeedIsiTests(APITestCase):

    def test_initialisation_idempotente(self):
        call_command('seed_isi', stdout=StringIO())
        compteurs = (
            Niveau.objects.count(), Semestre.objects.count(), Filiere.objects.count(),
            Matiere.objects.count(), ProfesseurMatiere.objects.count(), Utilisateur.objects.count(),
        )
        call_command('seed_isi', stdout=StringIO())

        self.assertEqual(compteurs[0], 8)
        self.assertEqual(compteurs[1], 16)
        self.assertEqual(compteurs, (
            Niveau.objects.count(), Semestre.objects.count(), Filiere.objects.count(),
            Matiere.objects.count(), ProfesseurMatiere.objects.count(), Utilisateur.objects.count(),
        ))

    def test_matieres_de_specialite_par_suffixe(self):
        call_command('seed_isi', '--sans-utilisateurs', stdout=StringIO())

        self.assertEqual(Matiere.objects.get(code='L2-SE-MAT1').nom, 'Électronique Analogique')
        self.assertEqual(Matiere.objects.get(code='M1-SSII-MAT1').nom, 'Mathématiques Appliquées')
        self.assertFalse(Utilisateur.objects.exists())

    def test_affectation_un_professeur_par_role(self):
        call_command('seed_isi', stdout=StringIO())

        professeur = Utilisateur.objects.get(email='prof.cs@isi.tn')
        self.assertTrue(professeur.check_password('Enseignant#Isi24'))
        self.assertTrue(ProfesseurMatiere.objects.filter(professeur=professeur, matiere__code='L1-CS-MAT1', role='cours').exists())
        self.assertEqual(Utilisateur.objects.get(email='admin@isi.tn').role, 'admin')
