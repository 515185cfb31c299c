"""
TypeManifest - Generated TypeScript declaration listing every cached image name.
"""

import logging
import posixpath
from pathlib import Path
from typing import Iterable, List, Optional


class TypeManifest:
    """
    Writes an `ImageName` union type for front-end consumers.

    The file is regenerated wholesale from the current cache keys on every
    cache mutation.
    """

    TYPE_NAME = 'ImageName'

    def __init__(self, filepath: str, logger: Optional[logging.Logger] = None):
        self.filepath = filepath
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def image_names(keys: Iterable[str]) -> List[str]:
        """Extension-stripped base names of the given cache keys."""
        names = {posixpath.splitext(posixpath.basename(key))[0] for key in keys}
        return sorted(names)

    def render(self, keys: Iterable[str]) -> str:
        names = self.image_names(keys)
        if not names:
            return f"export type {self.TYPE_NAME} = never;\n"
        union = ' | '.join(f'"{name}"' for name in names)
        return f"export type {self.TYPE_NAME} = {union};\n"

    def write(self, keys: Iterable[str]) -> None:
        """Render and write the declaration file."""
        path = Path(self.filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render(keys), encoding='utf-8')
        self.logger.debug(f"Type manifest written: {self.filepath}")
