# utilisateurs/serializers.py
from django.contrib.auth import password_validation
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from academic_structure.models import Filiere, Niveau
from academic_structure.serializers import FiliereResumeSerializer, NiveauResumeSerializer
from .models import Utilisateur


def valider_mot_de_passe(value, utilisateur=None):
    try:
        password_validation.validate_password(value, utilisateur)
    except DjangoValidationError as e:
        raise serializers.ValidationError(list(e.messages))
    return value


class UtilisateurSerializer(serializers.ModelSerializer):
    filiere = FiliereResumeSerializer(read_only=True)
    niveau = NiveauResumeSerializer(read_only=True)
    filiere_id = serializers.PrimaryKeyRelatedField(
        queryset=Filiere.objects.filter(is_deleted=False),
        write_only=True,
        source='filiere',
        required=False,
        allow_null=True,
        error_messages={'does_not_exist': 'Filière non trouvée'},
    )
    niveau_id = serializers.PrimaryKeyRelatedField(
        queryset=Niveau.objects.all(),
        write_only=True,
        source='niveau',
        required=False,
        allow_null=True,
        error_messages={'does_not_exist': 'Niveau non trouvé'},
    )

    class Meta:
        model = Utilisateur
        fields = [
            'id', 'email', 'prenom', 'nom', 'role', 'is_active',
            'filiere', 'filiere_id', 'niveau', 'niveau_id',
            'date_creation', 'date_modification', 'last_login',
        ]
        read_only_fields = ['id', 'date_creation', 'date_modification', 'last_login']
        extra_kwargs = {
            'email': {'validators': []},
            'prenom': {'min_length': 1, 'max_length': 50},
            'nom': {'min_length': 1, 'max_length': 50},
        }

    def validate_email(self, value):
        value = value.strip().lower()
        queryset = Utilisateur.objects.filter(email__iexact=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('Un utilisateur avec cet email existe déjà')
        return value

    def validate(self, attrs):
        role = attrs.get('role', getattr(self.instance, 'role', 'etudiant'))
        filiere = attrs.get('filiere', getattr(self.instance, 'filiere', None))
        niveau = attrs.get('niveau', getattr(self.instance, 'niveau', None))
        if role == 'etudiant':
            if not filiere or not niveau:
                raise serializers.ValidationError(
                    {'filiere_id': 'La filière et le niveau sont requis pour les étudiants'}
                )
            if filiere.niveau_id != niveau.pk:
                raise serializers.ValidationError(
                    {'niveau_id': 'La filière ne correspond pas au niveau choisi'}
                )
        return attrs


class UtilisateurCreationSerializer(UtilisateurSerializer):
    password = serializers.CharField(write_only=True, max_length=128)

    class Meta(UtilisateurSerializer.Meta):
        fields = UtilisateurSerializer.Meta.fields + ['password']

    def validate_password(self, value):
        return valider_mot_de_passe(value)

    def create(self, validated_data):
        password = validated_data.pop('password')
        email = validated_data.pop('email')
        return Utilisateur.objects.create_user(email=email, password=password, **validated_data)


class ProfilSerializer(serializers.ModelSerializer):
    """Champs modifiables par l'utilisateur sur son propre profil"""

    class Meta:
        model = Utilisateur
        fields = ['prenom', 'nom']
        extra_kwargs = {
            'prenom': {'min_length': 1, 'max_length': 50},
            'nom': {'min_length': 1, 'max_length': 50},
        }


class ConnexionSerializer(serializers.Serializer):
    email = serializers.EmailField(error_messages={'invalid': 'Format d\'email invalide', 'required': 'L\'email est requis'})
    password = serializers.CharField(error_messages={'required': 'Le mot de passe est requis'})


class RafraichissementSerializer(serializers.Serializer):
    refresh_token = serializers.CharField(error_messages={'required': 'Le token de rafraîchissement est requis'})


class ChangementMotDePasseSerializer(serializers.Serializer):
    current_password = serializers.CharField()
    new_password = serializers.CharField(max_length=128)

    def validate(self, attrs):
        if attrs['current_password'] == attrs['new_password']:
            raise serializers.ValidationError(
                {'new_password': 'Le nouveau mot de passe doit être différent de l\'ancien'}
            )
        valider_mot_de_passe(attrs['new_password'])
        return attrs


class DemandeReinitialisationSerializer(serializers.Serializer):
    email = serializers.EmailField(error_messages={'required': 'L\'email est requis'})


class ReinitialisationSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=64)
    new_password = serializers.CharField(max_length=128)

    def validate_new_password(self, value):
        return valider_mot_de_passe(value)


class MiseAJourGroupeeSerializer(serializers.Serializer):
    user_ids = serializers.ListField(
        child=serializers.IntegerField(),
        allow_empty=False,
        error_messages={'empty': 'Liste d\'IDs utilisateur requise'},
    )
    update_data = serializers.DictField()
