"""
Tests del almacenamiento de artefactos en MinIO (cliente MinIO simulado).
"""
import pytest
from fastapi import HTTPException
from minio.error import S3Error

from app.modules.files.service import FileStorage


class FakeS3Error(S3Error):
    """S3Error con el código indicado, sin respuesta HTTP real."""

    def __init__(self, code):
        Exception.__init__(self, code)
        self._fake_code = code

    @property
    def code(self):
        return self._fake_code

    def __str__(self):
        return self._fake_code


class FakeObject:
    def __init__(self, data):
        self.data = data
        self.closed = False
        self.released = False

    def read(self):
        return self.data

    def close(self):
        self.closed = True

    def release_conn(self):
        self.released = True


class FakeMinio:
    def __init__(self, bucket_exists=False):
        self.buckets = {"documentos"} if bucket_exists else set()
        self.objects = {}
        self.responses = []
        self.error = None

    def bucket_exists(self, bucket):
        return bucket in self.buckets

    def make_bucket(self, bucket):
        self.buckets.add(bucket)

    def put_object(self, bucket, path, stream, length, content_type):
        assert length == len(stream.getvalue())
        self.objects[(bucket, path)] = (stream.read(), content_type)

    def get_object(self, bucket, path):
        if self.error:
            raise self.error
        if (bucket, path) not in self.objects:
            raise FakeS3Error("NoSuchKey")
        response = FakeObject(self.objects[(bucket, path)][0])
        self.responses.append(response)
        return response


class TestFileStorage:

    def test_put_creates_bucket_once(self):
        minio = FakeMinio()
        storage = FileStorage(client=minio, bucket_name="documentos")

        path = storage.put("20100070970/invoice/a.xml", b"<Invoice/>", "application/xml")
        storage.put("20100070970/invoice/b.xml", b"<Invoice/>", "application/xml")

        assert path == "20100070970/invoice/a.xml"
        assert minio.buckets == {"documentos"}
        assert minio.objects[("documentos", path)] == (b"<Invoice/>", "application/xml")

    def test_download_releases_connection(self):
        minio = FakeMinio(bucket_exists=True)
        storage = FileStorage(client=minio, bucket_name="documentos")
        storage.put("a.zip", b"PK", "application/zip")

        assert storage.download("a.zip") == b"PK"
        response = minio.responses[0]
        assert response.closed and response.released

    def test_download_missing_object(self):
        storage = FileStorage(client=FakeMinio(bucket_exists=True), bucket_name="documentos")
        assert storage.download("no-existe.xml") is None
        assert storage.download(None) is None

    def test_download_storage_error(self):
        minio = FakeMinio(bucket_exists=True)
        minio.error = FakeS3Error("AccessDenied")
        storage = FileStorage(client=minio, bucket_name="documentos")

        with pytest.raises(HTTPException) as exc:
            storage.download("a.xml")
        assert exc.value.status_code == 500
