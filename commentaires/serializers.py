# commentaires/serializers.py
from rest_framework import serializers

from .models import Commentaire


class AuteurSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    prenom = serializers.CharField()
    nom = serializers.CharField()
    role = serializers.CharField()


class ReponseSerializer(serializers.ModelSerializer):
    auteur = AuteurSerializer(read_only=True)

    class Meta:
        model = Commentaire
        fields = ['id', 'contenu', 'auteur', 'parent', 'is_edited', 'date_creation', 'date_modification']


class CommentaireSerializer(serializers.ModelSerializer):
    """Commentaire racine avec ses réponses actives, de la plus ancienne à la plus récente"""
    auteur = AuteurSerializer(read_only=True)
    reponses = serializers.SerializerMethodField()

    class Meta:
        model = Commentaire
        fields = [
            'id', 'contenu', 'document', 'auteur', 'parent', 'is_edited', 'reponses',
            'date_creation', 'date_modification',
        ]

    def get_reponses(self, obj):
        reponses = sorted(
            (r for r in obj.reponses.all() if not r.is_deleted), key=lambda r: r.date_creation
        )
        return ReponseSerializer(reponses, many=True).data


class CommentaireCreationSerializer(serializers.Serializer):
    contenu = serializers.CharField(max_length=2000, trim_whitespace=True, error_messages={
        'required': 'Le contenu est requis',
        'blank': 'Le commentaire ne peut pas être vide',
        'max_length': 'Le commentaire ne peut pas dépasser 2000 caractères',
    })
    parent_id = serializers.IntegerField(required=False, allow_null=True)


class CommentaireMiseAJourSerializer(serializers.Serializer):
    contenu = serializers.CharField(max_length=2000, trim_whitespace=True, error_messages={
        'required': 'Le contenu est requis',
        'blank': 'Le commentaire ne peut pas être vide',
        'max_length': 'Le commentaire ne peut pas dépasser 2000 caractères',
    })
