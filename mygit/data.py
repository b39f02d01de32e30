import hashlib
import logging
import os
import tempfile
import zlib

from . import objects
from . import types
from .errors import CorruptStream, IOFailure, ObjectFormatError, ObjectNotFound, UnexpectedObjectType
from .types import GitObject

logger = logging.getLogger(__name__)

GIT_DIR_NAME = '.git'
DEFAULT_BRANCH = 'main'


def init(git_dir: types.Path) -> None:
    try:
        os.makedirs(f'{git_dir}/objects', exist_ok=True)
        os.makedirs(f'{git_dir}/refs/heads', exist_ok=True)
        os.makedirs(f'{git_dir}/refs/tags', exist_ok=True)
        if not os.path.isfile(f'{git_dir}/HEAD'):
            with open(f'{git_dir}/HEAD', 'w') as f:
                f.write(f'ref: refs/heads/{DEFAULT_BRANCH}\n')
    except OSError as e:
        raise IOFailure(git_dir, e.strerror or e) from e
    logger.debug('initialized repository in %s', git_dir)


def digest(data: bytes) -> bytes:
    return hashlib.sha1(data).digest()


def compress(data: bytes) -> bytes:
    return zlib.compress(data)


def decompress(data: bytes) -> bytes:
    try:
        return zlib.decompress(data)
    except zlib.error as e:
        raise CorruptStream(f'not a valid zlib stream: {e}') from e


def object_path(git_dir: types.Path, oid: types.OID) -> types.Path:
    return f'{git_dir}/objects/{oid[:2]}/{oid[2:]}'


def object_exists(git_dir: types.Path, oid: types.OID) -> bool:
    return bool(objects.OID_RE.fullmatch(oid)) and os.path.isfile(object_path(git_dir, oid))


def put_object(git_dir: types.Path, oid: types.OID, compressed: bytes) -> bool:
    """Store compressed object bytes under ``objects/<oid[:2]>/<oid[2:]>``.

    Returns False if the object was already present. The bytes are written to a
    temporary file next to the destination and renamed into place, so concurrent
    writers never observe a partial object.
    """
    path = object_path(git_dir, oid)
    if os.path.isfile(path):
        logger.debug('object %s already stored, skipped', oid[:8])
        return False

    fanout = os.path.dirname(path)
    try:
        # several objects share a fan-out directory, so it may already exist
        os.makedirs(fanout, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=fanout, prefix='tmp_obj_')
        try:
            with os.fdopen(fd, 'wb') as out:
                out.write(compressed)
            os.chmod(tmp_path, 0o444)
            os.replace(tmp_path, path)
        except BaseException:
            os.unlink(tmp_path)
            raise
    except OSError as e:
        raise IOFailure(path, e.strerror or e) from e

    logger.debug('stored object %s (%d bytes)', oid[:8], len(compressed))
    return True


def get_raw_object(git_dir: types.Path, oid: types.OID) -> bytes:
    if not objects.OID_RE.fullmatch(oid):
        raise ObjectNotFound(oid)

    path = object_path(git_dir, oid)
    try:
        with open(path, 'rb') as f:
            return f.read()
    except (FileNotFoundError, NotADirectoryError) as e:
        raise ObjectNotFound(oid) from e
    except OSError as e:
        raise IOFailure(path, e.strerror or e) from e


def hash_object(git_dir: types.Path, obj: GitObject, write=True) -> types.OID:
    raw = objects.serialize(obj)
    oid = digest(raw).hex()
    if write:
        put_object(git_dir, oid, compress(raw))
    return oid


def get_object(git_dir: types.Path, oid: types.OID, expected: types.ObjectType | None = None) -> GitObject:
    raw = get_raw_object(git_dir, oid)
    try:
        obj = objects.parse(decompress(raw))
    except (ObjectFormatError, CorruptStream) as e:
        raise type(e)(f'{oid}: {e}') from e

    if expected is not None and objects.type_of(obj) != expected:
        raise UnexpectedObjectType(oid, expected, objects.type_of(obj))
    return obj
