import os
from flask import current_app
import boto3
from botocore.client import Config


def _ensure_local_dir():
    d = current_app.config['LOCAL_STORAGE_DIR']
    os.makedirs(d, exist_ok=True)
    return d


def _s3_client():
    # endpoint_url is empty on AWS-managed S3, set for MinIO and friends
    s3_kwargs = {}
    endpoint = current_app.config.get('S3_ENDPOINT')
    if endpoint:
        s3_kwargs['endpoint_url'] = endpoint
    region = current_app.config.get('S3_REGION')
    if region:
        s3_kwargs['region_name'] = region

    return boto3.client(
        's3',
        aws_access_key_id=current_app.config.get('S3_ACCESS_KEY'),
        aws_secret_access_key=current_app.config.get('S3_SECRET_KEY'),
        config=Config(signature_version='s3v4', s3={'addressing_style': 'virtual'}),
        **s3_kwargs,
    )


def _split_s3(url):
    bucket, key = url.replace('s3://', '', 1).split('/', 1)
    return bucket, key


def _save_local(stream, key):
    d = _ensure_local_dir()
    path = os.path.join(d, key)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'wb') as f:
        while True:
            chunk = stream.read(1024 * 1024)
            if not chunk:
                break
            f.write(chunk)
    return f"file://{os.path.abspath(path)}"


def save_file(stream, key, content_type=None):
    """Store ``stream`` under ``key``; returns an ``s3://`` or ``file://`` reference."""
    backend = current_app.config.get('STORAGE_BACKEND', 'local')

    if backend == 's3':
        bucket = current_app.config.get('S3_BUCKET')
        extra = {'ContentType': content_type} if content_type else None
        try:
            _s3_client().upload_fileobj(stream, bucket, key, ExtraArgs=extra)
            return f"s3://{bucket}/{key}"
        except Exception as e:
            current_app.logger.exception('S3 upload failed, falling back to local storage: %s', e)
            try:
                stream.seek(0)
            except Exception:
                pass
            return _save_local(stream, key)
    return _save_local(stream, key)


def signed_url(ref, expires_in=None):
    """A URL a third party can fetch; local files have no public URL and are returned as-is."""
    if ref and ref.startswith('s3://'):
        bucket, key = _split_s3(ref)
        expires_in = expires_in or current_app.config.get('SIGNED_URL_EXPIRY', 3600)
        return _s3_client().generate_presigned_url(
            'get_object', Params={'Bucket': bucket, 'Key': key}, ExpiresIn=int(expires_in))
    return ref


def download_bytes(url: str) -> bytes:
    if url.startswith('s3://'):
        bucket, key = _split_s3(url)
        obj = _s3_client().get_object(Bucket=bucket, Key=key)
        return obj['Body'].read()
    elif url.startswith('file://'):
        path = url.replace('file://', '', 1)
        with open(path, 'rb') as f:
            return f.read()
    else:
        raise ValueError("Unsupported URL scheme")


def delete_file(url: str) -> bool:
    if not url:
        return False
    try:
        if url.startswith('s3://'):
            bucket, key = _split_s3(url)
            _s3_client().delete_object(Bucket=bucket, Key=key)
            return True
        if url.startswith('file://'):
            path = url.replace('file://', '', 1)
            if os.path.exists(path):
                os.remove(path)
                return True
    except Exception:
        current_app.logger.exception('Failed to delete stored file %s', url)
    return False
