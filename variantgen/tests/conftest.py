"""
Pytest fixtures for variantgen tests.
"""

import os

import pytest


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    import logging
    return logging.getLogger('test')


@pytest.fixture
def source_root(tmp_path):
    """Fixture providing an empty source tree."""
    root = tmp_path / 'images'
    root.mkdir()
    return root


@pytest.fixture
def derived_root(tmp_path):
    """Fixture providing an empty derived tree."""
    root = tmp_path / '.images'
    root.mkdir()
    return root


@pytest.fixture
def sync_config(tmp_path, source_root, derived_root):
    """Fixture providing a small configuration: .webp at 1x and 2x."""
    from variantgen.config import OriginSpec, SyncConfig, TargetSpec

    return SyncConfig(
        source_root=str(source_root),
        derived_root=str(derived_root),
        cache_path=str(tmp_path / 'cache.json'),
        type_path=str(tmp_path / 'type.d.ts'),
        origin=OriginSpec(formats=('.png', '.jpg', '.jpeg'), scale_divisor=3),
        target=TargetSpec(formats=('.webp',), scales=(1, 2)),
        workers=4,
    )


@pytest.fixture
def hash_store(sync_config):
    """Fixture providing an empty hash store writing the type manifest."""
    from variantgen.hash_store import HashStore
    from variantgen.type_manifest import TypeManifest

    return HashStore(sync_config.cache_path, TypeManifest(sync_config.type_path)).load()


@pytest.fixture
def fake_codec():
    """Fixture providing a codec double that writes small text files."""
    from unittest.mock import MagicMock
    from variantgen.image_codec import ImageCodec

    codec = MagicMock(spec=ImageCodec)
    codec.width_of.return_value = 300

    def resize(source, dest, width, fmt):
        with open(dest, 'w') as f:
            f.write(f'{width}{fmt}')

    codec.resize.side_effect = resize
    return codec


@pytest.fixture
def make_image():
    """Fixture returning a helper that writes a real image file."""
    from PIL import Image

    def _make(path, width=300, height=150, color='red', mode='RGB'):
        os.makedirs(os.path.dirname(str(path)), exist_ok=True)
        img = Image.new(mode, (width, height), color=color)
        ext = os.path.splitext(str(path))[1].lower()
        fmt = {'.jpg': 'JPEG', '.jpeg': 'JPEG', '.png': 'PNG'}.get(ext, 'PNG')
        if fmt == 'JPEG' and img.mode != 'RGB':
            img = img.convert('RGB')
        img.save(str(path), format=fmt)
        return str(path)

    return _make


@pytest.fixture
def write_file():
    """Fixture returning a helper that writes arbitrary bytes."""
    def _write(path, data=b'data'):
        os.makedirs(os.path.dirname(str(path)), exist_ok=True)
        with open(str(path), 'wb') as f:
            f.write(data)
        return str(path)

    return _write
