"""Tests for update bundle storage."""
import base64
import re

import pytest

from canary.exceptions import ArtifactStorageError, InvalidPayloadError
from canary.services import ArtifactStore


class TestSave:
    @pytest.mark.asyncio
    async def test_keeps_uploaded_name(self, tmp_path):
        store = ArtifactStore(tmp_path / "canary-update")

        path = await store.save(b"PK\x03\x04bundle", "update-v2.zip")

        assert path == tmp_path / "canary-update" / "update-v2.zip"
        assert path.read_bytes() == b"PK\x03\x04bundle"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", [None, "", ".."])
    async def test_fallback_name(self, tmp_path, name):
        store = ArtifactStore(tmp_path)

        path = await store.save(b"data", name)

        assert re.fullmatch(r"script_\d+\.zip", path.name)
        assert path.parent == tmp_path

    @pytest.mark.asyncio
    async def test_directory_components_are_stripped(self, tmp_path):
        store = ArtifactStore(tmp_path / "canary-update")

        path = await store.save(b"data", "../../etc/evil.zip")

        assert path == tmp_path / "canary-update" / "evil.zip"

    @pytest.mark.asyncio
    async def test_write_failure(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = ArtifactStore(blocker / "canary-update")

        with pytest.raises(ArtifactStorageError):
            await store.save(b"data", "bundle.zip")


class TestDecode:
    def test_base64(self):
        payload = bytes(range(256))
        assert ArtifactStore.decode(base64.b64encode(payload).decode()) == payload

    @pytest.mark.parametrize("encoded", ["not base64!", "abc"])
    def test_invalid(self, encoded):
        with pytest.raises(InvalidPayloadError):
            ArtifactStore.decode(encoded)
