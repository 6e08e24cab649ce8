from rest_framework import serializers
from .models import Document


class DocumentSerializer(serializers.ModelSerializer):
    uploaded_by_email = serializers.CharField(source='uploaded_by.email', read_only=True, allow_null=True)

    class Meta:
        model = Document
        fields = ['id', 'project', 'name', 'type', 'file_type', 'file_size', 'storage_url', 'thumbnail_url',
                  'uploaded_by', 'uploaded_by_email', 'uploaded_at', 'deleted_at', 'metadata']
        read_only_fields = fields


class DocumentDetailSerializer(DocumentSerializer):
    download_url = serializers.SerializerMethodField()

    class Meta(DocumentSerializer.Meta):
        fields = DocumentSerializer.Meta.fields + ['download_url']
        read_only_fields = fields

    def get_download_url(self, obj):
        return self.context.get('download_url')


class DocumentMetadataSerializer(serializers.Serializer):
    tags = serializers.ListField(child=serializers.CharField(), required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    caption = serializers.CharField(required=False, allow_blank=True)
    capture_date = serializers.DateTimeField(required=False)
    associated_milestone_id = serializers.UUIDField(required=False)


class DocumentUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    type = serializers.ChoiceField(choices=Document.TYPE_CHOICES, default=Document.TYPE_OTHER)
    metadata = serializers.JSONField(required=False, binary=True)

    def validate_metadata(self, value):
        if value in (None, ''):
            return {}
        if not isinstance(value, dict):
            raise serializers.ValidationError('metadata must be a JSON object')
        serializer = DocumentMetadataSerializer(data=value)
        serializer.is_valid(raise_exception=True)
        cleaned = dict(value)
        validated = serializer.validated_data
        if 'capture_date' in validated:
            cleaned['capture_date'] = validated['capture_date'].isoformat()
        if 'associated_milestone_id' in validated:
            cleaned['associated_milestone_id'] = str(validated['associated_milestone_id'])
        return cleaned


class PhotoUploadSerializer(serializers.Serializer):
    photos = serializers.ListField(child=serializers.FileField(), allow_empty=False)
    caption = serializers.CharField(required=False, allow_blank=True)
    milestone_id = serializers.UUIDField(required=False)


class PhotoUpdateSerializer(serializers.Serializer):
    caption = serializers.CharField(required=False, allow_blank=True)
    milestone_id = serializers.UUIDField(required=False, allow_null=True)
