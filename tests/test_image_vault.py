"""
Tests for data URI decoding and the on-disk image vault
"""

import re

import pytest

from conftest import JPEG_BYTES, JPEG_DATA_URI, PNG_DATA_URI, PNG_SIGNATURE, FrozenClock
from models.errors import InvalidImageEncoding
from utils.image_vault import (
    RETENTION_PRESERVE, ImageVault, decode_data_uri, is_data_uri, safe_key
)


def test_decode_png():
    image = decode_data_uri(PNG_DATA_URI)
    assert image.extension == "png"
    assert image.data == PNG_SIGNATURE


def test_decode_normalizes_jpeg_extension():
    image = decode_data_uri(JPEG_DATA_URI)
    assert image.extension == "jpg"
    assert image.data == JPEG_BYTES


def test_other_subtypes_are_used_verbatim():
    assert decode_data_uri("data:image/webp;base64,AAAA").extension == "webp"


@pytest.mark.parametrize("value", [
    "",
    "data:image/png,iVBORw0KGgo=",
    "data:text/plain;base64,aGVsbG8=",
    "data:image/svg+xml;base64,PHN2Zz4=",
    "data:image/png;base64,",
    "data:image/png;base64,@@not-base64@@",
])
def test_decode_rejects_malformed_uris(value):
    with pytest.raises(InvalidImageEncoding):
        decode_data_uri(value)


def test_is_data_uri():
    assert is_data_uri(PNG_DATA_URI)
    assert not is_data_uri("/images/a_1.png")
    assert not is_data_uri("")
    assert not is_data_uri(None)


def test_safe_key_stays_inside_directory():
    assert "/" not in safe_key("../../etc/passwd")
    assert not safe_key("../x").startswith(".")
    assert safe_key("abc_img0") == "abc_img0"
    assert safe_key("///") == "image"


def test_save_data_uri_writes_file_and_returns_url(vault, clock):
    url = vault.save_data_uri(PNG_DATA_URI, "g1")

    assert url == f"/images/g1_{clock.now}.png"
    assert (vault.images_dir / f"g1_{clock.now}.png").read_bytes() == PNG_SIGNATURE


def test_names_stay_unique_within_one_millisecond(vault):
    urls = {vault.save_data_uri(PNG_DATA_URI, "g1") for _ in range(3)}
    assert len(urls) == 3
    for url in urls:
        assert re.match(r"^/images/g1_\d+\.png$", url)


def test_hostile_key_cannot_escape_vault(vault):
    url = vault.save_data_uri(PNG_DATA_URI, "../../outside")
    path = vault.path_for_url(url)
    assert path.parent == vault.images_dir
    assert path.exists()


def test_path_for_url_rejects_non_vault_paths(vault):
    assert vault.path_for_url("https://example.com/cat.png") is None
    assert vault.path_for_url("/images/../data.json") is None
    assert vault.path_for_url("/images/") is None
    assert vault.path_for_url("/images/a_1.png") == vault.images_dir / "a_1.png"


def test_remove_under_replace_unlinks(vault):
    url = vault.save_data_uri(PNG_DATA_URI, "g1")
    assert vault.remove(url) is True
    assert not vault.path_for_url(url).exists()


def test_remove_missing_file_is_noop(vault):
    assert vault.remove("/images/never_1.png") is False


def test_remove_ignores_external_urls(vault):
    assert vault.remove("https://example.com/cat.png") is False
    assert vault.remove(None) is False


def test_preserve_policy_keeps_files(tmp_path):
    vault = ImageVault(tmp_path / "images", retention=RETENTION_PRESERVE, clock=FrozenClock())
    url = vault.save_data_uri(PNG_DATA_URI, "g1")

    assert vault.remove(url) is False
    assert vault.path_for_url(url).exists()

    assert vault.remove(url, force=True) is True
    assert not vault.path_for_url(url).exists()


def test_custom_prefix(tmp_path):
    vault = ImageVault(tmp_path / "pics", url_prefix="media/", clock=FrozenClock(5))
    url = vault.save_data_uri(PNG_DATA_URI, "g")
    assert url == "/media/g_5.png"
    assert vault.is_vault_url(url)
    assert not vault.is_vault_url("/images/g_5.png")
