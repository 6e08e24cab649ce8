"""
Tests for documents: file storage, presigned links, trash handling and photos
"""
import json
import shutil
import tempfile
import time
from datetime import timedelta
from io import BytesIO
from urllib.parse import urlparse, parse_qs

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.utils import timezone
from PIL import Image
from rest_framework import status
from rest_framework.test import APIClient
from backend.core.exceptions import NotFound, ValidationError
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.documents.models import Document
from backend.documents.services import DocumentService, PhotoService, _dms_to_degrees
from backend.documents.storage import FileStorage, key_from_url


def make_image_bytes(size=(800, 600), fmt='JPEG', capture_date=None, gps=None):
    """Encode a solid-colour image, optionally with an EXIF DateTime tag and a GPS IFD"""
    image = Image.new('RGB', size, color=(200, 120, 50))
    buffer = BytesIO()
    kwargs = {}
    if capture_date or gps:
        exif = Image.Exif()
        if capture_date:
            exif[0x0132] = capture_date
        if gps:
            exif[0x8825] = gps
        kwargs['exif'] = exif
    image.save(buffer, format=fmt, **kwargs)
    return buffer.getvalue()


def make_upload(name='photo.jpg', content=None, content_type='image/jpeg'):
    return SimpleUploadedFile(name, content if content is not None else make_image_bytes(), content_type=content_type)


class TempStorageMixin:
    """Point FILE_STORAGE_PATH at a temporary directory for each test"""

    def setUp(self):
        super().setUp()
        self.storage_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.storage_dir, ignore_errors=True)
        override = override_settings(FILE_STORAGE_PATH=self.storage_dir)
        override.enable()
        self.addCleanup(override.disable)


class FileStorageTests(TempStorageMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.storage = FileStorage()

    def test_key_format(self):
        """Keys combine a millisecond timestamp, 16 hex chars and the sanitized name"""
        key = self.storage.generate_key('my plan (v2).pdf')
        self.assertRegex(key, r'^\d{13}-[0-9a-f]{16}-my_plan__v2_\.pdf$')

    def test_key_truncates_long_names(self):
        """The sanitized base name keeps at most 50 characters"""
        key = self.storage.generate_key('a' * 80 + '.png')
        base = key.split('-', 2)[2]
        self.assertEqual(base, 'a' * 50 + '.png')

    def test_upload_read_and_delete(self):
        """Uploaded bytes can be read back and deleted"""
        result = self.storage.upload_file(b'hello', 'notes.pdf')
        self.assertEqual(result.file_size, 5)
        self.assertEqual(result.file_type, 'application/pdf')
        self.assertTrue(result.storage_url.endswith(f'/{result.key}'))
        self.assertTrue(self.storage.file_exists(result.storage_url))
        self.assertEqual(self.storage.read_file(result.key), b'hello')

        self.storage.delete_file(result.storage_url)
        self.assertFalse(self.storage.file_exists(result.key))
        # Deleting again is not an error
        self.storage.delete_file(result.storage_url)

    def test_read_missing_file(self):
        """Reading a missing key raises NotFound"""
        with self.assertRaises(NotFound):
            self.storage.read_file('missing.pdf')

    def test_file_metadata(self):
        """Metadata reports size and MIME type from the extension"""
        result = self.storage.upload_file(b'1234', 'sheet.XLSX')
        metadata = self.storage.get_file_metadata(result.key)
        self.assertEqual(metadata['file_size'], 4)
        self.assertEqual(metadata['file_type'], 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet')

    def test_presigned_download_url_round_trip(self):
        """A generated download URL carries a token the storage accepts"""
        result = self.storage.upload_file(b'data', 'plan.pdf')
        presigned = self.storage.generate_presigned_download_url(result.storage_url)
        query = parse_qs(urlparse(presigned.url).query)
        self.assertEqual(query['operation'], ['download'])
        self.assertTrue(self.storage.validate_presigned_url(result.key, query['token'][0], query['expires'][0]))

    def test_presigned_url_rejects_tampering_and_expiry(self):
        """Wrong tokens, other keys and expired links are rejected"""
        result = self.storage.upload_file(b'data', 'plan.pdf')
        query = parse_qs(urlparse(self.storage.generate_presigned_download_url(result.key).url).query)
        token, expires = query['token'][0], query['expires'][0]
        self.assertFalse(self.storage.validate_presigned_url(result.key, 'x' + token[1:], expires))
        self.assertFalse(self.storage.validate_presigned_url('other.pdf', token, expires))
        self.assertFalse(self.storage.validate_presigned_url(result.key, token, 'soon'))

        expired = parse_qs(urlparse(self.storage.generate_presigned_download_url(result.key, expires_in=-10).url).query)
        self.assertFalse(self.storage.validate_presigned_url(result.key, expired['token'][0], expired['expires'][0]))

    def test_presigned_upload_url(self):
        """Upload URLs reserve a fresh key"""
        presigned = self.storage.generate_presigned_upload_url('photo.jpg')
        self.assertIn('operation=upload', presigned.url)
        self.assertTrue(presigned.key.endswith('-photo.jpg'))
        self.assertGreater(presigned.expires_at, timezone.now())

    def test_key_from_url(self):
        """The key is the last path segment"""
        self.assertEqual(key_from_url('http://localhost:8000/api/v1/files/123-abc-plan.pdf'), '123-abc-plan.pdf')


class DocumentServiceTests(TempStorageMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.service = DocumentService()

    def _upload(self, name='contract.pdf', doc_type='contract', metadata=None):
        return self.service.upload_document(
            self.project.id, self.user,
            SimpleUploadedFile(name, b'%PDF-1.4 test', content_type='application/pdf'),
            doc_type=doc_type, metadata=metadata,
        )

    def test_upload_document(self):
        """Uploading stores the file and records its details"""
        document = self._upload(metadata={'tags': ['legal']})
        self.assertEqual(document.type, 'contract')
        self.assertEqual(document.file_type, 'application/pdf')
        self.assertEqual(document.file_size, len(b'%PDF-1.4 test'))
        self.assertTrue(self.service.storage.file_exists(document.storage_url))

    def test_upload_rejects_unknown_extension(self):
        """Only the allowed extensions can be uploaded"""
        with self.assertRaises(ValidationError) as ctx:
            self._upload(name='virus.exe')
        self.assertTrue(ctx.exception.message.startswith('Invalid file format. Allowed formats:'))

    @override_settings(MAX_UPLOAD_SIZE=4)
    def test_upload_rejects_large_files(self):
        """Files above MAX_UPLOAD_SIZE are rejected"""
        with self.assertRaises(ValidationError):
            self._upload()

    def test_soft_delete_and_restore(self):
        """Deleted documents move to the trash and can be restored"""
        document = self._upload()
        self.service.delete_document(document.id)
        with self.assertRaises(NotFound):
            self.service.get_document(document.id)
        self.assertEqual(self.service.list_documents(self.project.id), [])
        self.assertEqual(len(self.service.list_documents(self.project.id, {'include_deleted': 'true'})), 1)
        self.assertEqual(list(self.service.get_trash(self.project.id)), [document])

        restored = self.service.restore_document(document.id)
        self.assertIsNone(restored.deleted_at)
        self.assertEqual(self.service.get_document(document.id), document)

    def test_restore_document_not_in_trash(self):
        """Restoring a live document fails"""
        document = self._upload()
        with self.assertRaises(ValidationError) as ctx:
            self.service.restore_document(document.id)
        self.assertEqual(ctx.exception.message, 'Document is not in trash')

    def test_permanent_delete_removes_file(self):
        """Permanent deletion removes the row and the stored file"""
        document = self._upload()
        self.service.permanently_delete_document(document.id)
        self.assertFalse(Document.objects.filter(id=document.id).exists())
        self.assertFalse(self.service.storage.file_exists(document.storage_url))

    def test_cleanup_trash(self):
        """Only documents trashed longer than the retention period are purged"""
        old = self._upload(name='old.pdf')
        recent = self._upload(name='recent.pdf')
        self.service.delete_document(old.id)
        self.service.delete_document(recent.id)
        Document.objects.filter(id=old.id).update(deleted_at=timezone.now() - timedelta(days=31))

        self.assertEqual(self.service.cleanup_trash(days=30), 1)
        self.assertFalse(Document.objects.filter(id=old.id).exists())
        self.assertTrue(Document.objects.filter(id=recent.id).exists())

    def test_list_filters(self):
        """Documents can be filtered by type and tags"""
        self._upload(name='a.pdf', doc_type='contract', metadata={'tags': ['legal', 'signed']})
        self._upload(name='b.pdf', doc_type='invoice', metadata={'tags': ['paid']})
        self._upload(name='c.pdf', doc_type='invoice')
        self.assertEqual(len(self.service.list_documents(self.project.id, {'type': 'invoice'})), 2)
        tagged = self.service.list_documents(self.project.id, {'tags': 'signed,paid'})
        self.assertEqual(sorted(d.name for d in tagged), ['a.pdf', 'b.pdf'])

    def test_search_documents(self):
        """Search matches name, type and description"""
        self._upload(name='kitchen-contract.pdf', doc_type='contract')
        self._upload(name='scan.pdf', doc_type='receipt', metadata={'description': 'Tiles from the Depot'})
        self.assertEqual(self.service.search_documents(self.project.id, 'KITCHEN').count(), 1)
        self.assertEqual(self.service.search_documents(self.project.id, 'receipt').count(), 1)
        self.assertEqual(self.service.search_documents(self.project.id, 'depot').count(), 1)

    def test_download_url(self):
        """Download URLs point at the document's key"""
        document = self._upload()
        url = self.service.get_download_url(document.id)
        self.assertIn(key_from_url(document.storage_url), url)
        self.assertIn('token=', url)


class PhotoServiceTests(TempStorageMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.service = PhotoService()

    def test_extract_metadata(self):
        """Dimensions and EXIF capture date are extracted"""
        metadata = self.service.extract_metadata(make_image_bytes(size=(640, 480), capture_date='2024:05:01 10:30:00'))
        self.assertEqual(metadata['dimensions'], {'width': 640, 'height': 480})
        self.assertEqual(metadata['capture_date'], '2024-05-01T10:30:00')

    def test_extract_metadata_from_garbage(self):
        """Unreadable images give empty metadata"""
        self.assertEqual(self.service.extract_metadata(b'not an image'), {})

    def test_dms_conversion(self):
        """GPS degrees/minutes/seconds convert to signed decimal degrees"""
        self.assertEqual(_dms_to_degrees((50, 27, 0), 'N'), 50.45)
        self.assertEqual(_dms_to_degrees((30, 31, 12), 'E'), 30.52)
        self.assertEqual(_dms_to_degrees((30, 31, 12), b'W'), -30.52)

    def test_extract_gps_location(self):
        """A GPS IFD in the image becomes a signed latitude/longitude"""
        gps = {
            1: 'S', 2: (50.0, 27.0, 0.0),
            3: 'W', 4: (30.0, 31.0, 12.0),
        }
        metadata = self.service.extract_metadata(make_image_bytes(size=(320, 240), gps=gps))
        self.assertAlmostEqual(metadata['location']['latitude'], -50.45)
        self.assertAlmostEqual(metadata['location']['longitude'], -30.52)

    def test_no_location_without_gps(self):
        """Images without GPS data have no location"""
        metadata = self.service.extract_metadata(make_image_bytes(capture_date='2024:05:01 10:30:00'))
        self.assertNotIn('location', metadata)

    def test_generate_thumbnail(self):
        """Thumbnails fit within 300x300 and are JPEG"""
        thumbnail = self.service.generate_thumbnail(make_image_bytes(size=(800, 600), fmt='PNG'))
        with Image.open(BytesIO(thumbnail)) as image:
            self.assertEqual(image.format, 'JPEG')
            self.assertEqual(image.size, (300, 225))

    def test_upload_photo(self):
        """Photos are stored as photo documents with a thumbnail"""
        photo = self.service.upload_photo(
            self.project.id, self.user,
            make_upload(content=make_image_bytes(capture_date='2024:05:01 10:30:00')),
            metadata={'caption': 'Before demolition', 'capture_date': '2024-06-01T09:00:00'},
        )
        self.assertEqual(photo.type, Document.TYPE_PHOTO)
        self.assertIsNotNone(photo.thumbnail_url)
        self.assertIn('thumb_photo', photo.thumbnail_url)
        self.assertEqual(photo.metadata['caption'], 'Before demolition')
        # Provided metadata wins over EXIF
        self.assertEqual(photo.metadata['capture_date'], '2024-06-01T09:00:00')
        self.assertEqual(photo.metadata['dimensions'], {'width': 800, 'height': 600})

    def test_upload_photo_survives_thumbnail_failure(self):
        """A file Pillow cannot read is still stored, without a thumbnail"""
        photo = self.service.upload_photo(self.project.id, self.user, make_upload(content=b'corrupt jpeg bytes'))
        self.assertIsNone(photo.thumbnail_url)
        self.assertEqual(photo.metadata, {})

    @override_settings(MAX_PHOTOS_PER_UPLOAD=2)
    def test_upload_photos_limit(self):
        """Batches above the limit are rejected before anything is stored"""
        with self.assertRaises(ValidationError):
            self.service.upload_photos(self.project.id, self.user, [make_upload() for _ in range(3)])
        self.assertFalse(Document.objects.exists())

    def test_upload_photos_batch(self):
        """A batch creates one photo per file"""
        photos = self.service.upload_photos(self.project.id, self.user, [make_upload('a.jpg'), make_upload('b.png')])
        self.assertEqual(len(photos), 2)
        with self.assertRaises(ValidationError):
            self.service.upload_photos(self.project.id, self.user, [])

    def test_get_photos_chronological(self):
        """Photos sort by capture date, falling back to upload time"""
        undated = self.service.upload_photo(self.project.id, self.user, make_upload('undated.jpg'))
        old = self.service.upload_photo(
            self.project.id, self.user,
            make_upload('old.jpg', content=make_image_bytes(capture_date='2023:01:15 08:00:00')),
        )
        photos = self.service.get_photos(self.project.id)
        self.assertEqual([p.id for p in photos], [old.id, undated.id])

        captured = self.service.get_photos(self.project.id, {'captured_after': '2023-01-01', 'captured_before': '2023-12-31'})
        self.assertEqual([p.id for p in captured], [old.id])

    def test_caption_and_milestone(self):
        """Captions and milestone links are stored in metadata"""
        milestone = TestDataFactory.create_milestone(self.project)
        photo = self.service.upload_photo(self.project.id, self.user, make_upload())
        self.service.add_caption(photo.id, 'Tiling done')
        photo = self.service.associate_with_milestone(photo.id, milestone.id)
        self.assertEqual(photo.metadata['caption'], 'Tiling done')
        self.assertEqual(photo.metadata['associated_milestone_id'], str(milestone.id))
        self.assertEqual([p.id for p in self.service.get_photos(self.project.id, {'milestone_id': milestone.id})], [photo.id])
        self.assertEqual([p.id for p in self.service.get_photos_by_milestone(milestone.id)], [photo.id])

    def test_associate_with_foreign_milestone(self):
        """Milestones of other projects cannot be linked"""
        other_project = TestDataFactory.create_project(self.user)
        milestone = TestDataFactory.create_milestone(other_project)
        photo = self.service.upload_photo(self.project.id, self.user, make_upload())
        with self.assertRaises(NotFound):
            self.service.associate_with_milestone(photo.id, milestone.id)


class DocumentAPITests(TempStorageMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def _upload(self, name='contract.pdf', content=b'%PDF-1.4 test', **extra):
        data = {'file': SimpleUploadedFile(name, content, content_type='application/pdf'), 'type': 'contract'}
        data.update(extra)
        return self.client.post(f'/api/v1/projects/{self.project.id}/documents/', data, format='multipart')

    def test_upload_and_list(self):
        """Multipart upload creates a document that appears in the list"""
        response = self._upload(metadata=json.dumps({'tags': ['legal'], 'description': 'Signed contract'}))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['metadata']['tags'], ['legal'])

        response = self.client.get(f'/api/v1/projects/{self.project.id}/documents/', {'tags': 'legal'})
        self.assertEqual(len(response.data), 1)
        response = self.client.get(f'/api/v1/projects/{self.project.id}/documents/', {'q': 'signed'})
        self.assertEqual(len(response.data), 1)

    def test_upload_invalid_format(self):
        """Disallowed extensions return 400 with an error message"""
        response = self._upload(name='script.sh')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Invalid file format', response.data['error'])

    def test_download_with_presigned_link(self):
        """The detail download_url serves the file without a bearer token"""
        document_id = self._upload().data['id']
        response = self.client.get(f'/api/v1/documents/{document_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        link = urlparse(response.data['download_url'])

        anonymous = APIClient()
        response = anonymous.get(link.path, {k: v[0] for k, v in parse_qs(link.query).items()})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.content, b'%PDF-1.4 test')
        self.assertEqual(response['Content-Type'], 'application/pdf')

    def test_download_with_bad_token(self):
        """Invalid tokens give 403"""
        document_id = self._upload().data['id']
        key = key_from_url(Document.objects.get(id=document_id).storage_url)
        expires = int((time.time() + 60) * 1000)
        response = APIClient().get(f'/api/v1/files/{key}', {'token': 'forged', 'expires': expires})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_trash_restore_and_permanent_delete(self):
        """DELETE trashes, restore brings back, permanent=true removes"""
        document_id = self._upload().data['id']
        response = self.client.delete(f'/api/v1/documents/{document_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        response = self.client.get(f'/api/v1/projects/{self.project.id}/documents/trash/')
        self.assertEqual([d['id'] for d in response.data], [document_id])

        response = self.client.post(f'/api/v1/documents/{document_id}/restore/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['deleted_at'])

        response = self.client.delete(f'/api/v1/documents/{document_id}/?permanent=true')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Document.objects.filter(id=document_id).exists())

    def test_other_users_documents_hidden(self):
        """Documents of other users' projects return 404"""
        other_project = TestDataFactory.create_project(TestDataFactory.create_user())
        response = self.client.get(f'/api/v1/projects/{other_project.id}/documents/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_photo_upload_and_update(self):
        """Photos upload in batches and accept caption and milestone updates"""
        milestone = TestDataFactory.create_milestone(self.project)
        response = self.client.post(f'/api/v1/projects/{self.project.id}/photos/', {
            'photos': [make_upload('one.jpg'), make_upload('two.jpg')],
            'caption': 'Progress',
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data), 2)
        self.assertEqual(response.data[0]['metadata']['caption'], 'Progress')

        photo_id = response.data[0]['id']
        response = self.client.patch(f'/api/v1/photos/{photo_id}/', {
            'caption': 'Walls primed', 'milestone_id': str(milestone.id),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['metadata']['caption'], 'Walls primed')

        response = self.client.get(f'/api/v1/projects/{self.project.id}/photos/', {'milestone_id': str(milestone.id)})
        self.assertEqual([p['id'] for p in response.data], [photo_id])
