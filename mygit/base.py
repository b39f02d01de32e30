import logging
import os
import stat
from typing import Iterable

from . import data
from . import types
from .errors import IOFailure
from .types import Blob, Tree, Commit, TreeEntry

logger = logging.getLogger(__name__)


def hash_file(git_dir: types.Path, path: types.Path, write=True) -> types.OID:
    try:
        with open(path, 'rb') as f:
            content = f.read()
    except OSError as e:
        raise IOFailure(path, e.strerror or e) from e
    return data.hash_object(git_dir, Blob(content), write=write)


def cat_file(git_dir: types.Path, oid: types.OID) -> types.GitObject:
    return data.get_object(git_dir, oid)


def read_blob(git_dir: types.Path, oid: types.OID) -> bytes:
    return data.get_object(git_dir, oid, 'blob').content


def get_tree(git_dir: types.Path, oid: types.OID) -> Tree:
    return data.get_object(git_dir, oid, 'tree')


def ls_tree(git_dir: types.Path, oid: types.OID) -> tuple[TreeEntry, ...]:
    return get_tree(git_dir, oid).nodes


def ls_tree_names(git_dir: types.Path, oid: types.OID) -> list[str]:
    return [node.name for node in ls_tree(git_dir, oid)]


def get_commit(git_dir: types.Path, oid: types.OID) -> Commit:
    return data.get_object(git_dir, oid, 'commit')


def tree_sort_key(node: TreeEntry) -> bytes:
    # directories sort as if their name ended with a slash
    name = os.fsencode(node.name)
    return name + b'/' if node.is_tree else name


def is_ignored(name: str) -> bool:
    return name == data.GIT_DIR_NAME


def _iter_dir(git_dir: types.Path, directory: types.Path) -> Iterable[os.DirEntry]:
    store = os.path.realpath(git_dir)
    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except OSError as e:
        raise IOFailure(directory, e.strerror or e) from e
    return (entry for entry in entries
            if not is_ignored(entry.name) and os.path.realpath(entry.path) != store)


def _write_entry(git_dir: types.Path, entry: os.DirEntry) -> TreeEntry | None:
    try:
        if entry.is_symlink():
            target = os.readlink(os.fsencode(entry.path))
            oid = data.hash_object(git_dir, Blob(target))
            return TreeEntry(types.MODE_SYMLINK, entry.name, oid)

        if entry.is_dir(follow_symlinks=False):
            return TreeEntry(types.MODE_TREE, entry.name, write_tree(git_dir, entry.path))

        if entry.is_file(follow_symlinks=False):
            executable = entry.stat(follow_symlinks=False).st_mode & stat.S_IXUSR
            mode = types.MODE_EXECUTABLE if executable else types.MODE_FILE
            return TreeEntry(mode, entry.name, hash_file(git_dir, entry.path))
    except OSError as e:
        raise IOFailure(entry.path, e.strerror or e) from e

    logger.debug('skipping special file %s', entry.path)
    return None


def write_tree(git_dir: types.Path, directory: types.Path = '.') -> types.OID:
    """Snapshot ``directory`` into the object store and return the root tree oid.

    Children are written before their parent, since a tree's bytes embed the
    ids of its entries. The store directory itself, and anything named .git,
    is skipped at every level.
    """
    nodes = []
    for entry in _iter_dir(git_dir, directory):
        node = _write_entry(git_dir, entry)
        if node is not None:
            nodes.append(node)

    oid = data.hash_object(git_dir, Tree(tuple(sorted(nodes, key=tree_sort_key))))
    logger.debug('wrote tree %s for %s (%d entries)', oid[:8], directory, len(nodes))
    return oid


def commit_tree(git_dir: types.Path, tree: types.OID, parents: Iterable[types.OID] = (),
                message: str = '') -> types.OID:
    # tree and parents are not checked for existence here
    return data.hash_object(git_dir, Commit(tree=tree, parents=tuple(parents), message=message))
