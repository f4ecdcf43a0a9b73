# audit/serializers.py
from rest_framework import serializers

from .models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    utilisateur = serializers.SerializerMethodField()

    class Meta:
        model = AuditLog
        fields = [
            'id', 'utilisateur', 'action', 'ressource', 'ressource_id', 'details',
            'adresse_ip', 'user_agent', 'date_creation',
        ]

    def get_utilisateur(self, obj):
        if obj.utilisateur is None:
            return None
        return {
            'id': obj.utilisateur_id,
            'email': obj.utilisateur.email,
            'prenom': obj.utilisateur.prenom,
            'nom': obj.utilisateur.nom,
            'role': obj.utilisateur.role,
        }


class FiltresJournauxSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(required=False)
    action = serializers.ChoiceField(choices=AuditLog.ACTION_CHOICES, required=False, error_messages={
        'invalid_choice': 'Action inconnue',
    })
    resource = serializers.CharField(max_length=50, required=False)
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)
    search = serializers.CharField(max_length=100, required=False, allow_blank=True, error_messages={
        'max_length': 'La recherche ne peut pas dépasser 100 caractères',
    })

    def validate(self, attrs):
        if attrs.get('start_date') and attrs.get('end_date') and attrs['start_date'] > attrs['end_date']:
            raise serializers.ValidationError({'end_date': 'La date de fin doit être postérieure à la date de début'})
        return attrs


class NettoyageSerializer(serializers.Serializer):
    retention_days = serializers.IntegerField(min_value=30, max_value=3650, required=False, error_messages={
        'min_value': 'La durée de rétention doit être d\'au moins 30 jours',
        'max_value': 'La durée de rétention ne peut pas dépasser 3650 jours',
    })
