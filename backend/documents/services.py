"""
Document and photo services.

Deleting a document moves it to the trash by stamping deleted_at. Trashed
documents are hidden from normal lookups and are purged for good, file and
thumbnail included, once they are older than TRASH_RETENTION_DAYS.
"""
import logging
import os
from datetime import datetime, timedelta
from io import BytesIO

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from PIL import Image, ExifTags, UnidentifiedImageError

from backend.core.exceptions import NotFound, ValidationError
from backend.core.utils import parse_bool, parse_date, parse_list
from backend.projects.models import Milestone
from .models import Document
from .storage import FileStorage, DEFAULT_URL_EXPIRY

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = ['.pdf', '.jpg', '.jpeg', '.png', '.heic', '.doc', '.docx', '.xls', '.xlsx']

THUMBNAIL_SIZE = (300, 300)
THUMBNAIL_QUALITY = 80
THUMBNAIL_PREFIX = 'thumb_'

EXIF_IFD = 0x8769
GPS_IFD = 0x8825
EXIF_DATE_FORMAT = '%Y:%m:%d %H:%M:%S'

_EXIF_TAG_IDS = {name: tag for tag, name in ExifTags.TAGS.items()}
_GPS_TAG_IDS = {name: tag for tag, name in ExifTags.GPSTAGS.items()}


def _as_aware(value):
    if timezone.is_naive(value):
        return timezone.make_aware(value)
    return value


def _parse_capture_date(value):
    if not value:
        return None
    if isinstance(value, datetime):
        return _as_aware(value)
    try:
        return _as_aware(datetime.fromisoformat(str(value)))
    except ValueError:
        return None


class DocumentService:

    def __init__(self, storage=None):
        self.storage = storage or FileStorage()

    def validate_file(self, file_name, file_size):
        extension = os.path.splitext(file_name or '')[1].lower()
        if extension not in ALLOWED_EXTENSIONS:
            raise ValidationError(f'Invalid file format. Allowed formats: {", ".join(ALLOWED_EXTENSIONS)}')
        if file_size > settings.MAX_UPLOAD_SIZE:
            limit_mb = settings.MAX_UPLOAD_SIZE // (1024 * 1024)
            raise ValidationError(f'File size exceeds the {limit_mb}MB limit')

    @transaction.atomic
    def upload_document(self, project_id, user, file, doc_type=Document.TYPE_OTHER, metadata=None):
        valid_types = [choice[0] for choice in Document.TYPE_CHOICES]
        if doc_type not in valid_types:
            raise ValidationError(f'Invalid document type. Must be one of: {", ".join(valid_types)}')
        self.validate_file(file.name, file.size)

        result = self.storage.upload_file(file.read(), file.name)
        document = Document.objects.create(
            project_id=project_id,
            name=file.name,
            type=doc_type,
            file_type=result.file_type,
            file_size=result.file_size,
            storage_url=result.storage_url,
            uploaded_by=user,
            metadata=metadata or {},
        )
        logger.info(f"Document {document.id} '{document.name}' uploaded to project {project_id}")
        return document

    def _documents(self, owner=None, include_deleted=False):
        queryset = Document.objects.select_related('project', 'uploaded_by')
        if owner is not None:
            queryset = queryset.filter(project__owner=owner)
        if not include_deleted:
            queryset = queryset.filter(deleted_at__isnull=True)
        return queryset

    def get_document(self, document_id, owner=None, include_deleted=False):
        document = self._documents(owner, include_deleted).filter(id=document_id).first()
        if document is None:
            raise NotFound('Document not found')
        return document

    def list_documents(self, project_id, filters=None):
        filters = filters or {}
        queryset = self._documents(include_deleted=parse_bool(filters.get('include_deleted', False)))
        queryset = queryset.filter(project_id=project_id)

        doc_type = filters.get('type')
        if doc_type:
            queryset = queryset.filter(type=doc_type)
        uploaded_after = parse_date(filters.get('uploaded_after'), 'uploaded_after')
        if uploaded_after:
            queryset = queryset.filter(uploaded_at__date__gte=uploaded_after)
        uploaded_before = parse_date(filters.get('uploaded_before'), 'uploaded_before')
        if uploaded_before:
            queryset = queryset.filter(uploaded_at__date__lte=uploaded_before)

        documents = list(queryset.order_by('-uploaded_at'))
        tags = set(parse_list(filters.get('tags')))
        if tags:
            # JSON array containment differs between backends, match tags in Python
            documents = [d for d in documents if tags.intersection((d.metadata or {}).get('tags') or [])]
        return documents

    def search_documents(self, project_id, term):
        term = (term or '').strip()
        if not term:
            raise ValidationError('Search query is required')
        return self._documents().filter(project_id=project_id).filter(
            Q(name__icontains=term)
            | Q(type__icontains=term)
            | Q(metadata__description__icontains=term)
        ).order_by('-uploaded_at')

    def delete_document(self, document_id, owner=None):
        document = self.get_document(document_id, owner)
        document.deleted_at = timezone.now()
        document.save(update_fields=['deleted_at'])
        logger.info(f"Document {document.id} moved to trash")
        return document

    def restore_document(self, document_id, owner=None):
        document = self.get_document(document_id, owner, include_deleted=True)
        if document.deleted_at is None:
            raise ValidationError('Document is not in trash')
        document.deleted_at = None
        document.save(update_fields=['deleted_at'])
        logger.info(f"Document {document.id} restored from trash")
        return document

    def permanently_delete_document(self, document_id, owner=None):
        document = self.get_document(document_id, owner, include_deleted=True)
        self.storage.delete_file(document.storage_url)
        if document.thumbnail_url:
            self.storage.delete_file(document.thumbnail_url)
        document.delete()
        logger.info(f"Document {document_id} permanently deleted")

    def get_trash(self, project_id):
        return Document.objects.filter(
            project_id=project_id,
            deleted_at__isnull=False,
        ).order_by('-deleted_at')

    def cleanup_trash(self, days=None):
        """Permanently delete documents that have been in the trash longer than `days`"""
        if days is None:
            days = settings.TRASH_RETENTION_DAYS
        cutoff = timezone.now() - timedelta(days=days)
        expired = list(Document.objects.filter(deleted_at__isnull=False, deleted_at__lt=cutoff).values_list('id', flat=True))
        for document_id in expired:
            self.permanently_delete_document(document_id)
        logger.info(f"Trash cleanup removed {len(expired)} documents older than {days} days")
        return len(expired)

    def get_download_url(self, document_id, owner=None, expires_in=DEFAULT_URL_EXPIRY):
        document = self.get_document(document_id, owner)
        return self.storage.generate_presigned_download_url(document.storage_url, expires_in).url


def _dms_to_degrees(dms, ref):
    """Convert EXIF (degrees, minutes, seconds) rationals to signed decimal degrees"""
    degrees, minutes, seconds = (float(part) for part in dms)
    value = degrees + minutes / 60 + seconds / 3600
    if isinstance(ref, bytes):
        ref = ref.decode(errors='ignore')
    if str(ref).strip().upper() in ('S', 'W'):
        value = -value
    return round(value, 6)


class PhotoService:
    """Photos are documents of type photo with EXIF-derived metadata and a thumbnail"""

    def __init__(self, storage=None, document_service=None):
        self.storage = storage or FileStorage()
        self.documents = document_service or DocumentService(self.storage)

    def extract_metadata(self, content):
        metadata = {}
        try:
            with Image.open(BytesIO(content)) as image:
                metadata['dimensions'] = {'width': image.width, 'height': image.height}
                exif = image.getexif()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning(f"Could not read image metadata: {e}")
            return {}

        exif_ifd = exif.get_ifd(EXIF_IFD)
        raw_date = exif_ifd.get(_EXIF_TAG_IDS['DateTimeOriginal']) or exif.get(_EXIF_TAG_IDS['DateTime'])
        if raw_date:
            try:
                metadata['capture_date'] = datetime.strptime(str(raw_date).strip('\x00 '), EXIF_DATE_FORMAT).isoformat()
            except ValueError:
                logger.debug(f"Ignoring malformed EXIF date {raw_date!r}")

        gps = exif.get_ifd(GPS_IFD)
        latitude = gps.get(_GPS_TAG_IDS['GPSLatitude'])
        longitude = gps.get(_GPS_TAG_IDS['GPSLongitude'])
        if latitude and longitude:
            try:
                metadata['location'] = {
                    'latitude': _dms_to_degrees(latitude, gps.get(_GPS_TAG_IDS['GPSLatitudeRef'], 'N')),
                    'longitude': _dms_to_degrees(longitude, gps.get(_GPS_TAG_IDS['GPSLongitudeRef'], 'E')),
                }
            except (TypeError, ValueError, ZeroDivisionError):
                logger.debug('Ignoring malformed GPS coordinates')
        return metadata

    def generate_thumbnail(self, content):
        """JPEG thumbnail that fits within THUMBNAIL_SIZE"""
        with Image.open(BytesIO(content)) as image:
            thumbnail = image.convert('RGB')
            thumbnail.thumbnail(THUMBNAIL_SIZE)
            buffer = BytesIO()
            thumbnail.save(buffer, format='JPEG', quality=THUMBNAIL_QUALITY)
        return buffer.getvalue()

    @transaction.atomic
    def upload_photo(self, project_id, user, file, metadata=None):
        self.documents.validate_file(file.name, file.size)
        content = file.read()

        final_metadata = self.extract_metadata(content)
        final_metadata.update({k: v for k, v in (metadata or {}).items() if v is not None})

        result = self.storage.upload_file(content, file.name)
        thumbnail_url = None
        try:
            thumbnail = self.generate_thumbnail(content)
            thumbnail_url = self.storage.upload_file(thumbnail, f"{THUMBNAIL_PREFIX}{file.name}", 'image/jpeg').storage_url
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning(f"Thumbnail generation failed for {file.name}: {e}")

        photo = Document.objects.create(
            project_id=project_id,
            name=file.name,
            type=Document.TYPE_PHOTO,
            file_type=result.file_type,
            file_size=result.file_size,
            storage_url=result.storage_url,
            thumbnail_url=thumbnail_url,
            uploaded_by=user,
            metadata=final_metadata,
        )
        logger.info(f"Photo {photo.id} uploaded to project {project_id}")
        return photo

    def upload_photos(self, project_id, user, files, metadata=None):
        if not files:
            raise ValidationError('No photos provided')
        if len(files) > settings.MAX_PHOTOS_PER_UPLOAD:
            raise ValidationError(f'Cannot upload more than {settings.MAX_PHOTOS_PER_UPLOAD} photos at once')
        for file in files:
            self.documents.validate_file(file.name, file.size)

        with transaction.atomic():
            return [self.upload_photo(project_id, user, file, metadata) for file in files]

    def _photos(self, owner=None):
        queryset = Document.objects.filter(type=Document.TYPE_PHOTO, deleted_at__isnull=True)
        if owner is not None:
            queryset = queryset.filter(project__owner=owner)
        return queryset

    @staticmethod
    def _chronological(photos):
        def sort_key(photo):
            captured = _parse_capture_date((photo.metadata or {}).get('capture_date'))
            return captured or photo.uploaded_at
        return sorted(photos, key=sort_key)

    def get_photos(self, project_id, filters=None):
        filters = filters or {}
        queryset = self._photos().filter(project_id=project_id)

        milestone_id = filters.get('milestone_id')
        if milestone_id:
            queryset = queryset.filter(metadata__associated_milestone_id=str(milestone_id))
        uploaded_after = parse_date(filters.get('uploaded_after'), 'uploaded_after')
        if uploaded_after:
            queryset = queryset.filter(uploaded_at__date__gte=uploaded_after)
        uploaded_before = parse_date(filters.get('uploaded_before'), 'uploaded_before')
        if uploaded_before:
            queryset = queryset.filter(uploaded_at__date__lte=uploaded_before)

        photos = list(queryset)
        captured_after = parse_date(filters.get('captured_after'), 'captured_after')
        captured_before = parse_date(filters.get('captured_before'), 'captured_before')
        if captured_after or captured_before:
            def captured_in_range(photo):
                captured = _parse_capture_date((photo.metadata or {}).get('capture_date'))
                if captured is None:
                    return False
                day = timezone.localtime(captured).date()
                if captured_after and day < captured_after:
                    return False
                if captured_before and day > captured_before:
                    return False
                return True
            photos = [p for p in photos if captured_in_range(p)]
        return self._chronological(photos)

    def get_photos_by_milestone(self, milestone_id, owner=None):
        photos = self._photos(owner).filter(metadata__associated_milestone_id=str(milestone_id))
        return self._chronological(photos)

    def get_photo(self, photo_id, owner=None):
        photo = self._photos(owner).filter(id=photo_id).first()
        if photo is None:
            raise NotFound('Photo not found')
        return photo

    def add_caption(self, photo_id, caption, owner=None):
        photo = self.get_photo(photo_id, owner)
        photo.metadata = {**(photo.metadata or {}), 'caption': caption}
        photo.save(update_fields=['metadata'])
        return photo

    def associate_with_milestone(self, photo_id, milestone_id, owner=None):
        photo = self.get_photo(photo_id, owner)
        metadata = dict(photo.metadata or {})
        if milestone_id:
            if not Milestone.objects.filter(id=milestone_id, project_id=photo.project_id).exists():
                raise NotFound('Milestone not found')
            metadata['associated_milestone_id'] = str(milestone_id)
        else:
            metadata.pop('associated_milestone_id', None)
        photo.metadata = metadata
        photo.save(update_fields=['metadata'])
        return photo
