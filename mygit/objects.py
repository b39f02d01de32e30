"""Canonical serialization of blob, tree and commit objects.

Every object is stored as::

    <type> <size>\\0<content>

where ``size`` is the decimal byte length of ``content``. The object id is
the sha1 of exactly these bytes, so ``serialize`` and ``parse`` must be
exact inverses of each other.
"""
import os
import re

from typing_extensions import assert_never

from . import types
from .errors import (MalformedHeader, InvalidSize, TruncatedContent, MalformedTreeEntry,
                     MalformedCommit, UnsupportedObjectType)
from .types import Blob, Tree, Commit, TreeEntry, GitObject

OID_RE = re.compile(r'[0-9a-f]{40}')


def type_of(obj: GitObject) -> types.ObjectType:
    match obj:
        case Blob():
            return 'blob'
        case Tree():
            return 'tree'
        case Commit():
            return 'commit'
        case _:
            assert_never(obj)


def content_of(obj: GitObject) -> bytes:
    """Return the object's content, without the header."""
    match obj:
        case Blob():
            return obj.content
        case Tree():
            return b''.join(_serialize_tree_entry(node) for node in obj.nodes)
        case Commit():
            return _serialize_commit(obj)
        case _:
            assert_never(obj)


def encoded_size(obj: GitObject) -> int:
    return len(content_of(obj))


def serialize(obj: GitObject) -> bytes:
    content = content_of(obj)
    return f'{type_of(obj)} {len(content)}'.encode() + b'\x00' + content


def parse(raw: bytes) -> GitObject:
    header, sep, content = raw.partition(b'\x00')
    if not sep:
        raise MalformedHeader('object header is not terminated by a NUL byte')

    fields = header.split()
    if len(fields) != 2:
        raise MalformedHeader(f'expected "<type> <size>" header, got {header[:64]!r}')
    type_, size = fields

    # isdigit() on bytes only accepts ASCII digits, so "-1" and "+1" are rejected
    if not size.isdigit():
        raise InvalidSize(f'invalid object size {size!r}')
    size = int(size)
    if size != len(content):
        raise TruncatedContent(f'header declares {size} bytes, found {len(content)}')

    if type_ == b'blob':
        return Blob(content)
    elif type_ == b'tree':
        return _parse_tree(content)
    elif type_ == b'commit':
        return _parse_commit(content)
    raise UnsupportedObjectType(f'unsupported object type {type_!r}')


def _raw_oid(oid: types.OID) -> bytes:
    if not OID_RE.fullmatch(oid):
        raise MalformedTreeEntry(f'invalid object id {oid!r}')
    return bytes.fromhex(oid)


def _check_tree_entry(mode: bytes, name: bytes) -> None:
    if not name or b'/' in name or b'\x00' in name:
        raise MalformedTreeEntry(f'invalid tree entry name {name!r}')
    if not mode.isdigit():
        raise MalformedTreeEntry(f'invalid mode {mode!r} for {name!r}')


def _serialize_tree_entry(node: TreeEntry) -> bytes:
    name = os.fsencode(node.name)
    _check_tree_entry(node.mode.encode(), name)
    return node.mode.encode() + b' ' + name + b'\x00' + _raw_oid(node.oid)


def _parse_tree(content: bytes) -> Tree:
    nodes = []
    pos = 0
    while pos < len(content):
        end = content.find(b'\x00', pos)
        if end == -1:
            raise MalformedTreeEntry(f'tree entry at offset {pos} is not NUL terminated')

        mode, sep, name = content[pos:end].partition(b' ')
        if not sep or not mode or not name:
            raise MalformedTreeEntry(f'expected "<mode> <name>" at offset {pos}')
        _check_tree_entry(mode, name)

        raw_oid = content[end + 1:end + 21]
        if len(raw_oid) != 20:
            raise MalformedTreeEntry(f'tree entry {name!r} has a truncated hash')

        nodes.append(TreeEntry(mode=mode.decode(), name=os.fsdecode(name), oid=raw_oid.hex()))
        pos = end + 21

    return Tree(tuple(nodes))


def _check_commit_oid(key: str, oid: types.OID) -> None:
    if not OID_RE.fullmatch(oid):
        raise MalformedCommit(f'invalid {key} id {oid!r}')


def _serialize_commit(commit: Commit) -> bytes:
    _check_commit_oid('tree', commit.tree)
    for parent in commit.parents:
        _check_commit_oid('parent', parent)

    lines = [f'tree {commit.tree}\n']
    lines.extend(f'parent {parent}\n' for parent in commit.parents)
    for key, value in commit.headers:
        value = value.replace('\n', '\n ')
        lines.append(f'{key} {value}\n')
    lines.append(f'\n{commit.message}\n')
    return ''.join(lines).encode()


def _parse_commit(content: bytes) -> Commit:
    try:
        text = content.decode()
    except UnicodeDecodeError as e:
        raise MalformedCommit(f'commit is not valid UTF-8: {e}') from e

    head, sep, message = text.partition('\n\n')
    if not sep:
        raise MalformedCommit('commit has no blank line before the message')
    if message.endswith('\n'):
        message = message[:-1]

    tree = None
    parents = []
    headers = []
    for line in head.split('\n'):
        if line.startswith(' ') and headers:
            key, value = headers[-1]
            headers[-1] = (key, f'{value}\n{line[1:]}')
            continue

        key, sep, value = line.partition(' ')
        if not sep or not key:
            raise MalformedCommit(f'malformed commit header line {line!r}')
        if key == 'tree':
            if tree is not None:
                raise MalformedCommit('commit has more than one tree')
            _check_commit_oid(key, value)
            tree = value
        elif key == 'parent':
            _check_commit_oid(key, value)
            parents.append(value)
        else:
            headers.append((key, value))

    if tree is None:
        raise MalformedCommit('commit has no tree')
    return Commit(tree=tree, parents=tuple(parents), message=message, headers=tuple(headers))
