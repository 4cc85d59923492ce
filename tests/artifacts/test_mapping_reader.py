from __future__ import annotations

import json

import pytest

from contact_ingest.domain.exceptions import MappingFileError
from contact_ingest.domain.models import ColumnMapping
from contact_ingest.infra.artifacts.mapping_reader import readMappingFile


def test_reads_analysis_file(tmp_path):
    path = tmp_path / "analysis.json"
    path.write_text(json.dumps({"headers": ["Nome", "Telefone"], "mapping": {"name": 0, "phone": 1}}), encoding="utf-8")
    assert readMappingFile(str(path)) == ColumnMapping(name=0, phone=1)


def test_reads_flat_yaml(tmp_path):
    path = tmp_path / "mapping.yml"
    path.write_text("phone: 2\nextras: [0, 3]\n", encoding="utf-8")
    assert readMappingFile(str(path)) == ColumnMapping(name=None, phone=2, extras=(0, 3))


@pytest.mark.parametrize(
    "content",
    [
        '{"name": "zero"}',
        '{"phone": true}',
        '{"extras": 3}',
        '{"extras": [1, "2"]}',
        "[1, 2]",
        "{not json",
    ],
)
def test_invalid_mapping(tmp_path, content):
    path = tmp_path / "mapping.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(MappingFileError):
        readMappingFile(str(path))
