"""
Package assembly and distribution for cmdpack.

This package implements the stages that turn a finalized convention into an
exploded package, an archive, and a local installation.

Public API:

plan_resources : function
    Expand a convention into the ordered assemble operations.
assemble_package : function
    Build the staging tree.
create_package : function
    Archive the staging tree.
install_package : function
    Unpack the archive into the install directory.
clean_install : function
    Remove the installed package.

Example:
    from cmdpack.build import assemble_package, create_package, install_package

    assemble_package(resolved, resolver)
    result = create_package(resolved)
    install_package(resolved)

    print(f"Package: {result.package_path}")
"""

from .installer import clean_install, install_package
from .manager import assemble_package
from .packager import create_package
from .planner import plan_resources

__all__ = [
    "assemble_package",
    "clean_install",
    "create_package",
    "install_package",
    "plan_resources",
]
