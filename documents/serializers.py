# documents/serializers.py
import json

from django.utils import timezone
from rest_framework import serializers

from academic_structure.models import Matiere
from .models import Document, DocumentMatiere, DocumentPFE
from .services import emplacement_par_defaut


class MatiereDocumentSerializer(serializers.ModelSerializer):
    filiere = serializers.SerializerMethodField()
    semestre = serializers.SerializerMethodField()

    class Meta:
        model = Matiere
        fields = ['id', 'nom', 'code', 'filiere', 'semestre']

    def get_filiere(self, obj):
        return {'id': obj.filiere_id, 'nom': obj.filiere.nom, 'code': obj.filiere.code}

    def get_semestre(self, obj):
        return {'id': obj.semestre_id, 'nom': obj.semestre.nom}


class DocumentPFESerializer(serializers.ModelSerializer):
    class Meta:
        model = DocumentPFE
        fields = ['annee_diplome', 'filiere_diplome', 'titre_projet', 'resume', 'mots_cles']


class CorrectionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Document
        fields = ['id', 'titre', 'nom_fichier', 'taille_fichier', 'type_mime', 'date_creation']


class DocumentSerializer(serializers.ModelSerializer):
    """Représentation d'un document avec ses matières, son auteur et sa correction"""
    matieres = serializers.SerializerMethodField()
    telecharge_par = serializers.SerializerMethodField()
    correction = serializers.SerializerMethodField()
    pfe = DocumentPFESerializer(read_only=True)

    class Meta:
        model = Document
        fields = [
            'id', 'titre', 'description', 'categorie', 'nom_fichier', 'taille_fichier', 'type_mime',
            'matiere_id', 'matieres', 'telecharge_par', 'correction_de', 'correction', 'pfe',
            'download_count', 'view_count', 'date_creation', 'date_modification',
        ]

    def get_matieres(self, obj):
        matieres = list(obj.matieres.all())
        if not matieres and obj.matiere_id:
            matieres = [obj.matiere]
        return MatiereDocumentSerializer(matieres, many=True).data

    def get_telecharge_par(self, obj):
        auteur = obj.telecharge_par
        return {'id': auteur.pk, 'prenom': auteur.prenom, 'nom': auteur.nom, 'role': auteur.role}

    def get_correction(self, obj):
        correction = next((c for c in obj.corrections.all() if not c.is_deleted), None)
        if correction is None:
            return None
        return CorrectionSerializer(correction).data

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not instance.est_pfe:
            data.pop('pfe', None)
        return data


def _liste_identifiants(valeur):
    """Accepte une liste ou une chaîne JSON '[1, 2]' (envoi multipart)"""
    if valeur in (None, ''):
        return []
    if isinstance(valeur, str):
        try:
            valeur = json.loads(valeur)
        except ValueError:
            raise serializers.ValidationError('matiere_ids doit être une liste JSON d\'identifiants')
    if not isinstance(valeur, list):
        valeur = [valeur]
    try:
        return [int(v) for v in valeur]
    except (TypeError, ValueError):
        raise serializers.ValidationError('matiere_ids doit contenir des identifiants numériques')


class DocumentCreationSerializer(serializers.Serializer):
    titre = serializers.CharField(max_length=200, error_messages={
        'blank': 'Le titre est requis',
        'required': 'Le titre est requis',
        'max_length': 'Le titre ne peut pas dépasser 200 caractères',
    })
    description = serializers.CharField(max_length=1000, required=False, allow_blank=True, error_messages={
        'max_length': 'La description ne peut pas dépasser 1000 caractères',
    })
    categorie = serializers.ChoiceField(choices=Document.CATEGORIE_CHOICES, error_messages={
        'invalid_choice': 'La catégorie doit être cours, td, tp, examen ou pfe',
    })
    matiere_id = serializers.IntegerField(required=False, allow_null=True)
    matiere_ids = serializers.JSONField(required=False)

    # Métadonnées de rangement, déduites de la première matière si absentes
    niveau = serializers.CharField(max_length=50, required=False, allow_blank=True)
    filiere = serializers.CharField(max_length=50, required=False, allow_blank=True)
    semestre = serializers.CharField(max_length=50, required=False, allow_blank=True)
    matiere = serializers.CharField(max_length=50, required=False, allow_blank=True)

    def validate_matiere_ids(self, value):
        return _liste_identifiants(value)

    def validate(self, attrs):
        identifiants = list(attrs.get('matiere_ids') or [])
        if attrs.get('matiere_id') and attrs['matiere_id'] not in identifiants:
            identifiants.insert(0, attrs['matiere_id'])

        if attrs['categorie'] != 'pfe' and not identifiants:
            raise serializers.ValidationError({
                'matiere_ids': 'Au moins une matière est requise pour les documents non-PFE'
            })

        matieres = {
            m.pk: m for m in Matiere.objects.select_related('filiere__niveau', 'semestre')
            .filter(pk__in=identifiants, is_deleted=False)
        }
        manquantes = [i for i in identifiants if i not in matieres]
        if manquantes:
            raise serializers.ValidationError({
                'matiere_ids': f"Matière(s) introuvable(s) ou supprimée(s): {', '.join(map(str, manquantes))}"
            })
        attrs['matieres'] = [matieres[i] for i in identifiants]
        return attrs

    def emplacement(self):
        donnees = self.validated_data
        emplacement = {cle: donnees.get(cle) for cle in ('niveau', 'filiere', 'semestre', 'matiere')}
        if donnees['matieres']:
            for cle, valeur in emplacement_par_defaut(donnees['matieres'][0]).items():
                emplacement[cle] = emplacement[cle] or valeur
        return emplacement


class DocumentPFECreationSerializer(serializers.Serializer):
    titre = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(max_length=1000, required=False, allow_blank=True)
    annee_diplome = serializers.IntegerField(error_messages={
        'required': "L'année de diplôme est requise",
        'invalid': "L'année de diplôme doit être un nombre",
    })
    filiere_diplome = serializers.CharField(max_length=100, error_messages={
        'required': 'La filière de diplôme est requise',
        'blank': 'La filière de diplôme est requise',
    })
    titre_projet = serializers.CharField(max_length=300, error_messages={
        'required': 'Le titre du projet est requis',
        'blank': 'Le titre du projet est requis',
        'max_length': 'Le titre du projet ne peut pas dépasser 300 caractères',
    })
    resume = serializers.CharField(max_length=2000, error_messages={
        'required': 'Le résumé est requis',
        'blank': 'Le résumé est requis',
        'max_length': 'Le résumé ne peut pas dépasser 2000 caractères',
    })
    mots_cles = serializers.CharField(required=False, allow_blank=True)
    niveau = serializers.CharField(max_length=50)
    filiere = serializers.CharField(max_length=50)
    semestre = serializers.CharField(max_length=50)

    def validate_annee_diplome(self, value):
        maximum = timezone.now().year + 10
        if value < 2000 or value > maximum:
            raise serializers.ValidationError(f"L'année de diplôme doit être comprise entre 2000 et {maximum}")
        return value

    def validate_mots_cles(self, value):
        return [mot.strip() for mot in value.split(',') if mot.strip()]

    def validate(self, attrs):
        if not attrs.get('titre'):
            attrs['titre'] = attrs['titre_projet'][:200]
        attrs['categorie'] = 'pfe'
        return attrs

    def metadonnees_pfe(self):
        donnees = self.validated_data
        return {
            'annee_diplome': donnees['annee_diplome'],
            'filiere_diplome': donnees['filiere_diplome'],
            'titre_projet': donnees['titre_projet'],
            'resume': donnees['resume'],
            'mots_cles': donnees.get('mots_cles', []),
        }

    def emplacement(self):
        return {cle: self.validated_data[cle] for cle in ('niveau', 'filiere', 'semestre')}


class DocumentMiseAJourSerializer(serializers.ModelSerializer):
    matiere_id = serializers.PrimaryKeyRelatedField(
        queryset=Matiere.objects.filter(is_deleted=False),
        source='matiere',
        required=False,
        error_messages={'does_not_exist': 'Matière non trouvée'},
    )

    class Meta:
        model = Document
        fields = ['titre', 'description', 'categorie', 'matiere_id']
        extra_kwargs = {
            'titre': {'max_length': 200},
            'description': {'max_length': 1000},
        }

    def update(self, instance, validated_data):
        document = super().update(instance, validated_data)
        if 'matiere' in validated_data:
            # La matière principale remplace les liens existants
            document.liens_matieres.all().delete()
            DocumentMatiere.objects.create(document=document, matiere=validated_data['matiere'])
        return document
