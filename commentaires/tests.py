from datetime import timedelta

from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from audit.models import AuditLog
from isi_archive.exceptions import ErreurMetier
from isi_archive.outils_tests import DonneesTestMixin
from .models import Commentaire
from . import services


class DonneesCommentairesMixin(DonneesTestMixin):

    @classmethod
    def setUpTestData(cls):
        cls.creer_structure()
        cls.professeur = cls.creer_professeur()
        cls.affecter(cls.professeur, cls.matiere)
        cls.etudiant = cls.creer_etudiant(cls.filiere, prenom='Amine')
        cls.camarade = cls.creer_etudiant(cls.filiere, email='camarade@isi.tn', prenom='Yasmine')
        cls.document = cls.creer_document(cls.professeur, cls.matiere)
        cls.debut = timezone.now() - timedelta(hours=1)

    @classmethod
    def commenter(cls, auteur, minutes, parent=None, document=None):
        return Commentaire.objects.create(
            contenu=f"Message de {auteur.prenom}",
            document=document or cls.document,
            auteur=auteur,
            parent=parent,
            date_creation=cls.debut + timedelta(minutes=minutes),
        )


class ReglesReponseTests(DonneesCommentairesMixin, APITestCase):

    def test_professeur_repond_toujours(self):
        racine = self.commenter(self.etudiant, 0)
        self.commenter(self.professeur, 1, parent=racine)
        self.assertEqual(services.peut_repondre(self.professeur, racine), (True, None))

    def test_etudiant_repond_a_son_commentaire(self):
        racine = self.commenter(self.etudiant, 0)
        self.assertEqual(services.peut_repondre(self.etudiant, racine), (True, None))

    def test_etudiant_attend_le_professeur(self):
        racine = self.commenter(self.etudiant, 0)
        self.commenter(self.etudiant, 1, parent=racine)

        self.assertEqual(services.peut_repondre(self.etudiant, racine), (False, services.RAISON_ATTENTE))

    def test_etudiant_repond_apres_le_professeur(self):
        racine = self.commenter(self.etudiant, 0)
        self.commenter(self.etudiant, 1, parent=racine)
        self.commenter(self.professeur, 2, parent=racine)

        self.assertEqual(services.peut_repondre(self.etudiant, racine), (True, None))

    def test_reponse_professeur_supprimee_ne_compte_pas(self):
        racine = self.commenter(self.etudiant, 0)
        self.commenter(self.etudiant, 1, parent=racine)
        reponse = self.commenter(self.professeur, 2, parent=racine)
        reponse.is_deleted = True
        reponse.save()

        self.assertFalse(services.peut_repondre(self.etudiant, racine)[0])

    def test_etudiant_ne_repond_pas_a_un_camarade(self):
        racine = self.commenter(self.camarade, 0)
        self.assertEqual(services.peut_repondre(self.etudiant, racine), (False, services.RAISON_ETUDIANT))

    def test_etudiant_repond_au_professeur_dans_le_fil_d_un_camarade(self):
        racine = self.commenter(self.camarade, 0)
        reponse_professeur = self.commenter(self.professeur, 1, parent=racine)

        self.assertEqual(services.peut_repondre(self.etudiant, reponse_professeur), (True, None))

        commentaire = services.creer_commentaire(self.etudiant, self.document, 'Merci', reponse_professeur)
        self.assertEqual(commentaire.parent, racine)

    def test_parent_d_un_autre_document(self):
        autre = self.creer_document(self.professeur, self.matiere, titre='Chapitre 2')
        racine = self.commenter(self.etudiant, 0, document=autre)

        with self.assertRaisesMessage(ErreurMetier, 'Commentaire parent non trouvé'):
            services.creer_commentaire(self.etudiant, self.document, 'Hors sujet', racine)

    def test_moderation(self):
        self.assertTrue(services.peut_moderer(self.professeur, self.document))
        self.assertFalse(services.peut_moderer(self.etudiant, self.document))
        self.assertFalse(services.peut_moderer(self.creer_professeur(email='prof2@isi.tn'), self.document))


class CommentairesApiTests(DonneesCommentairesMixin, APITestCase):

    def url(self, document=None):
        return f'/api/documents/{(document or self.document).pk}/comments/'

    def test_ajout_commentaire(self):
        self.authentifier(self.etudiant)

        response = self.client.post(self.url(), {'contenu': '  Question sur le chapitre  '})

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['contenu'], 'Question sur le chapitre')
        self.assertEqual(response.data['data']['auteur']['prenom'], 'Amine')
        self.assertTrue(AuditLog.objects.filter(action='COMMENT_CREATE').exists())

    def test_commentaire_vide(self):
        self.authentifier(self.etudiant)
        response = self.client.post(self.url(), {'contenu': '   '})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_commentaire_trop_long(self):
        self.authentifier(self.etudiant)
        response = self.client.post(self.url(), {'contenu': 'x' * 2001})
        self.assertEqual(response.data['details'][0]['message'], 'Le commentaire ne peut pas dépasser 2000 caractères')

    def test_commentaire_sans_acces_au_document(self):
        autre_filiere = self.creer_filiere(self.niveau, code='L1-SE', nom='Electronique')
        self.authentifier(self.creer_etudiant(autre_filiere, email='se@isi.tn'))

        response = self.client.post(self.url(), {'contenu': 'Bonjour'})

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_reponse_refusee_entre_etudiants(self):
        racine = self.commenter(self.camarade, 0)
        self.authentifier(self.etudiant)

        response = self.client.post(self.url(), {'contenu': 'Moi aussi', 'parent_id': racine.pk})

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], services.RAISON_ETUDIANT)

    def test_parent_inexistant(self):
        self.authentifier(self.etudiant)
        response = self.client.post(self.url(), {'contenu': 'Réponse', 'parent_id': 999999})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_liste_avec_droits(self):
        racine_etudiant = self.commenter(self.etudiant, 0)
        racine_camarade = self.commenter(self.camarade, 1)
        self.commenter(self.professeur, 2, parent=racine_camarade)
        supprime = self.commenter(self.etudiant, 3)
        supprime.is_deleted = True
        supprime.save()
        self.authentifier(self.etudiant)

        response = self.client.get(self.url())

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['can_moderate'])
        droits = {c['id']: c['can_reply'] for c in response.data['data']}
        self.assertEqual(droits, {racine_etudiant.pk: True, racine_camarade.pk: False})
        self.assertEqual(response.data['data'][0]['id'], racine_camarade.pk)
        self.assertEqual(len(response.data['data'][0]['reponses']), 1)

    def test_liste_moderateur(self):
        self.authentifier(self.professeur)
        response = self.client.get(self.url())
        self.assertTrue(response.data['can_moderate'])

    def test_modification_par_l_auteur(self):
        commentaire = self.commenter(self.etudiant, 0)
        self.authentifier(self.etudiant)

        response = self.client.put(f'/api/documents/comments/{commentaire.pk}/', {'contenu': 'Corrigé'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        commentaire.refresh_from_db()
        self.assertEqual(commentaire.contenu, 'Corrigé')
        self.assertTrue(commentaire.is_edited)

    def test_modification_par_un_autre(self):
        commentaire = self.commenter(self.etudiant, 0)
        self.authentifier(self.professeur)
        response = self.client.put(f'/api/documents/comments/{commentaire.pk}/', {'contenu': 'Corrigé'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_suppression_par_le_moderateur_avec_reponses(self):
        racine = self.commenter(self.etudiant, 0)
        reponse = self.commenter(self.professeur, 1, parent=racine)
        self.authentifier(self.professeur)

        response = self.client.delete(f'/api/documents/comments/{racine.pk}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        racine.refresh_from_db()
        reponse.refresh_from_db()
        self.assertTrue(racine.is_deleted)
        self.assertTrue(reponse.is_deleted)
        self.assertEqual(reponse.deleted_by, self.professeur)

    def test_suppression_par_un_camarade(self):
        commentaire = self.commenter(self.etudiant, 0)
        self.authentifier(self.camarade)
        response = self.client.delete(f'/api/documents/comments/{commentaire.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_commentaire_supprime_introuvable(self):
        commentaire = self.commenter(self.etudiant, 0)
        commentaire.is_deleted = True
        commentaire.save()
        self.authentifier(self.etudiant)

        response = self.client.put(f'/api/documents/comments/{commentaire.pk}/', {'contenu': 'Corrigé'})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_droit_de_reponse(self):
        racine = self.commenter(self.etudiant, 0)
        self.commenter(self.etudiant, 1, parent=racine)
        self.authentifier(self.etudiant)

        response = self.client.get(f'/api/documents/comments/{racine.pk}/can-reply/')

        self.assertEqual(response.data['data'], {'can_reply': False, 'reason': services.RAISON_ATTENTE})
