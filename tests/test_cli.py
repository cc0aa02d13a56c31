"""
Tests for the CLI interface
"""

import json
from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from genealogy_cli import cli


def test_cli_help():
    """Test CLI help output"""
    runner = CliRunner()
    result = runner.invoke(cli, ['--help'])

    assert result.exit_code == 0
    assert "Genealogy Import" in result.output
    assert "detect" in result.output
    assert "preview" in result.output
    assert "import" in result.output

def test_cli_verbose_flag(sample_gedcom_file):
    """Test that verbose flag is passed correctly"""
    runner = CliRunner()

    with patch('genealogy_cli.get_project_logger') as mock_logger:
        mock_logger.return_value = MagicMock()
        runner.invoke(cli, ['--verbose', 'detect', str(sample_gedcom_file)])

        mock_logger.assert_called_with('genealogy_cli', True)

def test_detect_command(sample_geneweb_file):
    """Test format detection output"""
    runner = CliRunner()
    result = runner.invoke(cli, ['detect', str(sample_geneweb_file)])

    assert result.exit_code == 0
    assert "geneweb" in result.output

def test_detect_unsupported(temp_dir):
    """Test unsupported files exit with an error"""
    path = temp_dir / 'notes.txt'
    path.write_text("nothing to see here")

    runner = CliRunner()
    result = runner.invoke(cli, ['detect', str(path)])

    assert result.exit_code == 1
    assert "Unsupported" in result.output

def test_preview_command(sample_gedcom_file):
    """Test preview statistics"""
    runner = CliRunner()
    result = runner.invoke(cli, ['preview', str(sample_gedcom_file)])

    assert result.exit_code == 0
    assert "Persons:     6" in result.output
    assert "Families:    2" in result.output
    assert "Coordinates: no" in result.output
    assert "Years:       1920 - 1980" in result.output

def test_import_command_output_file(sample_gedcom_file, temp_dir):
    """Test JSON written to a file"""
    output = temp_dir / 'graph.json'
    runner = CliRunner()
    result = runner.invoke(cli, ['import', str(sample_gedcom_file), '--output', str(output), '--sibling-links'])

    assert result.exit_code == 0
    assert "6 nodes, 9 edges" in result.output

    payload = json.loads(output.read_text(encoding='utf-8'))
    assert len(payload['nodes']) == 6
    assert len(payload['edges']) == 9
    assert payload['result']['warnings'] == []

def test_import_command_options(sample_geneweb_file, temp_dir):
    """Test flags are mapped onto import options"""
    output = temp_dir / 'graph.json'
    runner = CliRunner()
    result = runner.invoke(cli, ['import', str(sample_geneweb_file), '-o', str(output),
                                 '--no-layout', '--no-tag', '--no-notes'])

    assert result.exit_code == 0
    payload = json.loads(output.read_text(encoding='utf-8'))
    assert all(node['position'] == {'x': 0.0, 'y': 0.0} for node in payload['nodes'])
    assert all('Genealogy' not in node['tags'] for node in payload['nodes'])
    assert all(node['notes'] == "" for node in payload['nodes'])

def test_import_command_failure(temp_dir):
    """Test empty files exit with an error"""
    path = temp_dir / 'empty.ged'
    path.write_text("")

    runner = CliRunner()
    result = runner.invoke(cli, ['import', str(path)])

    assert result.exit_code == 1
    assert "empty" in result.output

def test_import_missing_file():
    """Test click rejects missing paths"""
    runner = CliRunner()
    result = runner.invoke(cli, ['import', '/nonexistent/family.ged'])

    assert result.exit_code == 2
