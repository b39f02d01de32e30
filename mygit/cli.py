import argparse
import logging
import os
import sys

from . import base
from . import data
from . import objects
from .errors import MygitError
from .types import Tree


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(name)s: %(message)s', stream=sys.stderr)
    try:
        args.func(args)
    except MygitError as e:
        print(f'fatal: {e}', file=sys.stderr)
        sys.exit(1)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='mygit')
    parser.add_argument('--git-dir', default=os.environ.get('GIT_DIR', data.GIT_DIR_NAME))
    parser.add_argument('-v', '--verbose', action='store_true')
    commands = parser.add_subparsers(dest='command')
    commands.required = True

    init_parser = commands.add_parser('init')
    init_parser.set_defaults(func=init)

    hash_object_parser = commands.add_parser('hash-object')
    hash_object_parser.set_defaults(func=hash_object)
    hash_object_parser.add_argument('-w', dest='write', action='store_true')
    hash_object_parser.add_argument('file')

    cat_file_parser = commands.add_parser('cat-file')
    cat_file_parser.set_defaults(func=cat_file)
    show = cat_file_parser.add_mutually_exclusive_group(required=True)
    show.add_argument('-p', dest='show', action='store_const', const='pretty')
    show.add_argument('-t', dest='show', action='store_const', const='type')
    show.add_argument('-s', dest='show', action='store_const', const='size')
    cat_file_parser.add_argument('object')

    ls_tree_parser = commands.add_parser('ls-tree')
    ls_tree_parser.set_defaults(func=ls_tree)
    ls_tree_parser.add_argument('--name-only', action='store_true')
    ls_tree_parser.add_argument('tree')

    write_tree_parser = commands.add_parser('write-tree')
    write_tree_parser.set_defaults(func=write_tree)
    write_tree_parser.add_argument('directory', nargs='?', default='.')

    commit_tree_parser = commands.add_parser('commit-tree')
    commit_tree_parser.set_defaults(func=commit_tree)
    commit_tree_parser.add_argument('tree')
    commit_tree_parser.add_argument('-p', dest='parents', action='append', default=[])
    commit_tree_parser.add_argument('-m', '--message', required=True)

    return parser.parse_args(argv)


def init(args):
    data.init(args.git_dir)
    print(f'Initialized empty mygit repository in {os.path.abspath(args.git_dir)}')


def hash_object(args):
    print(base.hash_file(args.git_dir, args.file, write=args.write))


def cat_file(args):
    obj = base.cat_file(args.git_dir, args.object)
    if args.show == 'type':
        print(objects.type_of(obj))
    elif args.show == 'size':
        print(objects.encoded_size(obj))
    elif isinstance(obj, Tree):
        for node in obj.nodes:
            print(_format_tree_entry(node))
    else:
        sys.stdout.flush()
        sys.stdout.buffer.write(objects.content_of(obj))
        sys.stdout.buffer.flush()


def ls_tree(args):
    if args.name_only:
        for name in base.ls_tree_names(args.git_dir, args.tree):
            print(name)
        return
    for node in base.ls_tree(args.git_dir, args.tree):
        print(_format_tree_entry(node))


def _format_tree_entry(node):
    type_ = 'tree' if node.is_tree else 'blob'
    return f'{node.mode.zfill(6)} {type_} {node.oid}\t{node.name}'


def write_tree(args):
    print(base.write_tree(args.git_dir, args.directory))


def commit_tree(args):
    print(base.commit_tree(args.git_dir, args.tree, args.parents, args.message))
