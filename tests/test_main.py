"""Tests for the command line interface."""

import json

from unittest import mock

from nihongodb.__main__ import get_parser, main

from conftest import SAMPLES


def write_json(path, value):
    path.write_text(json.dumps(value, ensure_ascii=False), encoding='utf-8')
    return str(path)


class TestParser:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv('NEO4J_URI', raising=False)
        monkeypatch.delenv('NEO4J_DATABASE', raising=False)
        args = get_parser().parse_args(['init'])
        assert args.neo4j_uri == 'neo4j://localhost:7687'
        assert args.database is None
        assert not args.debug

    def test_environment(self, monkeypatch):
        monkeypatch.setenv('NEO4J_URI', 'neo4j://db:7687')
        monkeypatch.setenv('NEO4J_DATABASE', 'japanese')
        args = get_parser().parse_args(['read', 'request.json'])
        assert args.neo4j_uri == 'neo4j://db:7687'
        assert args.database == 'japanese'
        assert args.request_file == 'request.json'


class TestValidateCommand:

    def test_valid_entry(self, tmp_path, capsys):
        path = write_json(tmp_path / 'entry.json', SAMPLES['kotowaza'])
        assert main(['-s', 'validate', 'kotowaza', path]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output['proverb'] == '猿も木から落ちる'
        assert output['references'] == []

    def test_invalid_entry(self, tmp_path, capsys):
        path = write_json(tmp_path / 'entry.json', {'word': '感動'})
        assert main(['-s', 'validate', 'words', path]) == 1
        assert capsys.readouterr().out == ''


class TestStoreCommands:

    def test_read(self, tmp_path, capsys):
        request = {
            'operation': 'byIndex',
            'collectionName': 'words',
            'indexValues': ['感動'],
        }
        path = write_json(tmp_path / 'request.json', request)
        store = mock.MagicMock()
        store.__enter__.return_value = store
        store.find.return_value = [{'_id': 'a' * 24, 'word': '感動'}]
        with mock.patch(
            'nihongodb.__main__.Neo4jDocumentStore', return_value=store,
        ) as factory:
            assert main(['-s', '--database', 'jp', 'read', path]) == 0
        assert factory.call_args.kwargs == {'database': 'jp'}
        output = json.loads(capsys.readouterr().out)
        assert output == [{'_id': 'a' * 24, 'word': '感動'}]

    def test_init(self):
        store = mock.MagicMock()
        store.__enter__.return_value = store
        with mock.patch(
            'nihongodb.__main__.Neo4jDocumentStore', return_value=store,
        ):
            assert main(['-s', 'init']) == 0
        store.create_constraints.assert_called_once_with()
        store.create_search_indexes.assert_called_once_with()
