from __future__ import annotations

from contact_ingest.domain.analysis.header import build_header, cell_signal, is_likely_header


def test_cell_signal_weights():
    assert cell_signal("ana@exemplo.com") == -1
    assert cell_signal("Telefone") == 2
    assert cell_signal("11999998888") == -1
    assert cell_signal("Rua 10") == 0.5
    assert cell_signal("   ") == 0


def test_word_row_is_header():
    result = build_header([["Nome", "Telefone", "Cidade"], ["Ana", "11999998888", "Recife"]])
    assert result.has_header
    assert result.headers == ["Nome", "Telefone", "Cidade"]
    assert result.body_rows == [["Ana", "11999998888", "Recife"]]
    assert result.total_rows == 1


def test_lone_row_is_never_header():
    result = build_header([["João", "11999998888", "São Paulo"]])
    assert not result.has_header
    assert result.headers == ["Column 1", "Column 2", "Column 3"]
    assert result.body_rows == [["João", "11999998888", "São Paulo"]]


def test_data_row_is_not_header():
    assert not is_likely_header(["ana@exemplo.com", "11999998888"])
    grid = [["11999998888", "ana@exemplo.com"], ["11988887777", "Bia", "extra"]]
    result = build_header(grid)
    assert not result.has_header
    assert result.headers == ["Column 1", "Column 2", "Column 3"]
    assert result.body_rows == grid


def test_blank_and_duplicate_header_cells():
    result = build_header([["  Nome   Completo ", "", "Nome", "Nome"], ["Ana", "x", "y", "z"]])
    assert result.headers == ["Nome Completo", "Column 2", "Nome", "Nome (2)"]


def test_preview_is_bounded_and_fitted():
    rows = [["Nome", "Telefone"]] + [[f"Pessoa {i}", "1", "sobra"] for i in range(7)] + [["Curta"]]
    result = build_header(rows)
    assert result.total_rows == 8
    assert len(result.preview) == 5
    assert all(len(row) == 2 for row in result.preview)
    assert result.preview[0] == ["Pessoa 0", "1"]


def test_empty_grid():
    result = build_header([])
    assert not result.has_header
    assert result.headers == []
    assert result.body_rows == []
    assert result.preview == []
    assert result.total_rows == 0
