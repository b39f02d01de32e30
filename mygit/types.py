import os
from typing import TypeAlias, NamedTuple, Literal, Union

Path: TypeAlias = str  # a path in the filesystem
OID: TypeAlias = str  # hex sha1, 40 chars
Mode: TypeAlias = str
ObjectType: TypeAlias = Literal['blob', 'tree', 'commit']

MODE_FILE: Mode = '100644'
MODE_EXECUTABLE: Mode = '100755'
MODE_SYMLINK: Mode = '120000'
MODE_TREE: Mode = '40000'


class TreeEntry(NamedTuple):
    mode: Mode
    name: str
    oid: OID

    @property
    def is_tree(self) -> bool:
        return self.mode == MODE_TREE


class Blob(NamedTuple):
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class Tree(NamedTuple):
    nodes: tuple[TreeEntry, ...] = ()

    @property
    def size(self) -> int:
        # mode, space, name, NUL, raw 20-byte hash
        return sum(len(node.mode.encode()) + 1 + len(os.fsencode(node.name)) + 1 + 20
                   for node in self.nodes)


class Commit(NamedTuple):
    tree: OID
    parents: tuple[OID, ...] = ()
    message: str = ''
    headers: tuple[tuple[str, str], ...] = ()  # any other "key value" lines, in order


GitObject: TypeAlias = Union[Blob, Tree, Commit]
