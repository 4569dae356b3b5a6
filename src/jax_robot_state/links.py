"""Selection of the renderable links whose poses get tracked."""

import logging
import os
from typing import List, NamedTuple, Optional, Sequence, Tuple

from .core import MeshGeometry, RobotDescription
from .core.description import Geometry

logger = logging.getLogger(__name__)

DEFAULT_MESH_EXTENSIONS = (".stl", ".dae")

PACKAGE_PREFIX = "package://"


class LinkSelection(NamedTuple):
    """Tracked link keys with their index-aligned mesh resource paths."""
    link_set: Tuple[str, ...]
    mesh_paths: Tuple[str, ...]


def mesh_filename(visual: Geometry, extensions: Sequence[str] = DEFAULT_MESH_EXTENSIONS) -> Optional[str]:
    """Return the mesh resource of a visual if it is a supported mesh file."""
    match visual:
        case MeshGeometry(filename=filename) if filename.lower().endswith(tuple(extensions)):
            return filename
        case _:
            return None


def select_links(
    description: RobotDescription,
    root_name: Optional[str] = None,
    extensions: Sequence[str] = DEFAULT_MESH_EXTENSIONS,
) -> LinkSelection:
    """Pick the links that carry a renderable mesh.

    For every link, walk parent pointers upwards until reaching either the
    description root or a link whose visual is a supported mesh file. The
    link is tracked under that ancestor's name when the ancestor has a mesh
    and descends from `root_name`. Links whose walk never reaches the root
    are auxiliary fixtures and are skipped silently. Several links may
    collapse onto the same key when they share a mesh-bearing ancestor.

    Args:
        description: Parsed robot description.
        root_name: Link the tracked ancestors must descend from. Defaults to
            the description root.
        extensions: Recognized mesh file suffixes (lower case).

    Returns:
        LinkSelection with keys and mesh paths in link document order.
    """
    root_name = description.root if root_name is None else root_name
    link_set: List[str] = []
    mesh_paths: List[str] = []

    for link in description.links:
        current: Optional[str] = link.name
        filename = None
        while current is not None:
            filename = mesh_filename(description.link(current).visual, extensions)
            if filename is not None or current == description.root:
                break
            current = description.parent_of(current)

        if current is None or filename is None:
            continue
        if not _descends_from(description, current, root_name):
            continue

        logger.debug("link %s is descendant of %s", link.name, current)
        link_set.append(current)
        mesh_paths.append(filename)

    return LinkSelection(tuple(link_set), tuple(mesh_paths))


def _descends_from(description: RobotDescription, name: str, ancestor: str) -> bool:
    current: Optional[str] = name
    while current is not None:
        if current == ancestor:
            return True
        current = description.parent_of(current)
    return False


def resolve_mesh_path(filename: str, package_path: str) -> str:
    """Map a `package://pkg/...` URI onto a directory below `package_path`.

    Plain paths and other URI schemes are returned unchanged.
    """
    if filename.startswith(PACKAGE_PREFIX):
        return os.path.join(package_path, filename[len(PACKAGE_PREFIX):])
    return filename
