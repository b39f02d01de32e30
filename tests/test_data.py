import os
import zlib
from concurrent.futures import ThreadPoolExecutor

import pytest

from mygit import data, objects
from mygit.errors import (CorruptStream, ObjectNotFound, UnexpectedObjectType, MalformedHeader,
                          MalformedTreeEntry)
from mygit.types import Blob, Tree

HELLO_OID = 'ce013625030ba8dba906f756967f9e9ca394464a'


def test_init_layout(worktree):
    git_dir = str(worktree / '.git')
    data.init(git_dir)
    assert os.path.isdir(f'{git_dir}/objects')
    assert os.path.isdir(f'{git_dir}/refs')
    with open(f'{git_dir}/HEAD') as f:
        assert f.read() == 'ref: refs/heads/main\n'

    # running it again is harmless
    data.init(git_dir)


def test_digest():
    raw = b'blob 6\x00hello\n'
    assert len(data.digest(raw)) == 20
    assert data.digest(raw).hex() == HELLO_OID
    assert data.digest(raw) == data.digest(raw)


def test_compression():
    raw = b'blob 6\x00hello\n'
    assert data.decompress(data.compress(raw)) == raw
    assert zlib.decompress(data.compress(raw)) == raw


def test_decompress_garbage():
    with pytest.raises(CorruptStream):
        data.decompress(b'definitely not zlib')


def test_hash_object_layout(git_dir):
    oid = data.hash_object(git_dir, Blob(b'hello\n'))
    assert oid == HELLO_OID

    path = f'{git_dir}/objects/ce/013625030ba8dba906f756967f9e9ca394464a'
    assert data.object_path(git_dir, oid) == path
    with open(path, 'rb') as f:
        assert zlib.decompress(f.read()) == b'blob 6\x00hello\n'


def test_hash_object_without_write(git_dir):
    oid = data.hash_object(git_dir, Blob(b'hello\n'), write=False)
    assert oid == HELLO_OID
    assert not data.object_exists(git_dir, oid)


def test_put_is_idempotent(git_dir):
    compressed = data.compress(b'blob 6\x00hello\n')
    assert data.put_object(git_dir, HELLO_OID, compressed)
    assert not data.put_object(git_dir, HELLO_OID, compressed)
    assert data.hash_object(git_dir, Blob(b'hello\n')) == HELLO_OID
    assert data.get_raw_object(git_dir, HELLO_OID) == compressed


def test_put_into_existing_fanout_directory(git_dir):
    os.makedirs(f'{git_dir}/objects/ce')
    other = 'ce' + '0' * 38
    data.put_object(git_dir, other, data.compress(b'blob 0\x00'))
    data.hash_object(git_dir, Blob(b'hello\n'))
    assert sorted(os.listdir(f'{git_dir}/objects/ce')) == sorted([other[2:], HELLO_OID[2:]])


def test_concurrent_writes_of_the_same_object(git_dir):
    with ThreadPoolExecutor(max_workers=8) as pool:
        oids = set(pool.map(lambda _: data.hash_object(git_dir, Blob(b'hello\n')), range(32)))
    assert oids == {HELLO_OID}
    assert os.listdir(f'{git_dir}/objects/ce') == [HELLO_OID[2:]]
    assert data.get_object(git_dir, HELLO_OID) == Blob(b'hello\n')


def test_get_object(git_dir):
    oid = data.hash_object(git_dir, Tree())
    assert data.get_object(git_dir, oid) == Tree()
    assert data.get_object(git_dir, oid, 'tree') == Tree()


def test_get_object_of_unexpected_type(git_dir):
    oid = data.hash_object(git_dir, Blob(b'hello\n'))
    with pytest.raises(UnexpectedObjectType):
        data.get_object(git_dir, oid, 'tree')


@pytest.mark.parametrize('oid', ['0' * 40, 'abc', '../../HEAD', HELLO_OID.upper()])
def test_missing_object(git_dir, oid):
    with pytest.raises(ObjectNotFound):
        data.get_object(git_dir, oid)


def test_corrupt_object_file(git_dir):
    path = data.object_path(git_dir, HELLO_OID)
    os.makedirs(os.path.dirname(path))
    with open(path, 'wb') as f:
        f.write(b'garbage')

    with pytest.raises(CorruptStream, match=HELLO_OID):
        data.get_object(git_dir, HELLO_OID)


def test_object_with_bad_header(git_dir):
    data.put_object(git_dir, HELLO_OID, data.compress(b'blob 6 hello\n'))
    with pytest.raises(MalformedHeader, match=HELLO_OID):
        data.get_object(git_dir, HELLO_OID)


def test_stored_bytes_match_canonical_serialization(git_dir):
    blob = Blob(b'some content')
    oid = data.hash_object(git_dir, blob)
    raw = data.decompress(data.get_raw_object(git_dir, oid))
    assert raw == objects.serialize(blob)
    assert data.digest(raw).hex() == oid


def test_fanout_path_is_a_file(git_dir):
    with open(f'{git_dir}/objects/ce', 'wb') as f:
        f.write(b'not a directory')

    with pytest.raises(ObjectNotFound):
        data.get_object(git_dir, HELLO_OID)


def test_corrupt_tree_mode_is_reported(git_dir):
    content = b'\xff\xfe hello.txt\x00' + bytes.fromhex(HELLO_OID)
    raw = f'tree {len(content)}'.encode() + b'\x00' + content
    oid = data.digest(raw).hex()
    data.put_object(git_dir, oid, data.compress(raw))

    with pytest.raises(MalformedTreeEntry, match=oid):
        data.get_object(git_dir, oid)
