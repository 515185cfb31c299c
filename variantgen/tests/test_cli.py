"""Tests for CLI module."""

import json
import os

import pytest

from variantgen.changes import AddPaths
from variantgen.cli import cmd_sync, create_parser, get_config, main
from variantgen.reconciler import Reconciler


def tree_args(tmp_path):
    return [
        '--source', str(tmp_path / 'images'),
        '--derived', str(tmp_path / '.images'),
        '--cache', str(tmp_path / 'cache.json'),
        '--origin-format', '.png',
        '--target-format', '.webp',
        '--target-scale', '1,2',
    ]


class TestCreateParser:
    """Tests for argument parser creation."""

    def test_parser_created(self):
        """Test parser is created successfully."""
        assert create_parser() is not None

    def test_sync_command(self):
        """Test sync command parsing."""
        args = create_parser().parse_args(['sync', '--show-files', '--workers', '2'])

        assert args.command == 'sync'
        assert args.show_files is True
        assert args.workers == 2
        assert args.add is None

    def test_sync_add_and_remove_exclusive(self):
        """Test --add and --remove cannot be combined."""
        with pytest.raises(SystemExit):
            create_parser().parse_args(['sync', '--add', 'a.png', '--remove', 'b.png'])

    def test_watch_command(self):
        """Test watch command parsing."""
        args = create_parser().parse_args(['watch', '--debounce', '0.5'])

        assert args.command == 'watch'
        assert args.debounce == 0.5

    def test_srcset_command(self):
        args = create_parser().parse_args(['srcset', 'logo', '-f', 'webp'])

        assert args.name == 'logo'
        assert args.format == 'webp'


class TestGetConfig:
    """Tests for configuration overrides."""

    def test_cli_overrides_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv('VARIANTGEN_TARGET_FORMATS', '.avif')
        args = create_parser().parse_args(['sync'] + tree_args(tmp_path) + ['--origin-scale', '2'])

        config = get_config(args)

        assert config.source_root == str(tmp_path / 'images')
        assert config.origin.formats == ('.png',)
        assert config.origin.scale_divisor == 2
        assert config.target.formats == ('.webp',)
        assert config.target.scales == (1, 2)

    @pytest.mark.parametrize('option, error', [
        (['--workers', '0'], "Workers must be at least 1"),
        (['--origin-scale', '0'], "Origin scale divisor must be positive"),
    ])
    def test_zero_overrides_are_validated(self, tmp_path, option, error):
        """Test explicit zero values override the environment and fail validation."""
        args = create_parser().parse_args(['sync'] + tree_args(tmp_path) + option)

        assert error in get_config(args).validate()

    def test_sync_rejects_zero_workers(self, tmp_path):
        assert main(['sync', '-q', '--workers', '0'] + tree_args(tmp_path)) == 1


class TestMain:
    """Tests for main entry point."""

    def test_no_command(self):
        """Test running without command shows help."""
        assert main([]) == 1

    def test_sync_invalid_config(self, tmp_path):
        """Test invalid configuration exits with 1."""
        result = main(['sync', '--source', str(tmp_path), '--derived', str(tmp_path)])

        assert result == 1

    def test_sync_full_pass(self, tmp_path, make_image, capsys):
        """Test a full sync writes variants and the cache."""
        make_image(tmp_path / 'images' / 'logo.png', width=300, height=300)

        result = main(['sync'] + tree_args(tmp_path))

        assert result == 0
        assert sorted(os.listdir(tmp_path / '.images')) == [
            'logo@1x.png', 'logo@1x.webp', 'logo@2x.png', 'logo@2x.webp',
        ]
        assert [c.args[1:] for c in run.call_args_list] == [
            (),
            (AddPaths((str(tmp_path / 'images' / 'late.png'),)),),
        ]
        assert list(json.loads((tmp_path / 'cache.json').read_text())) == ['logo.png']
        assert 'Transformed: 1' in capsys.readouterr().out

    def test_sync_remove(self, tmp_path, make_image):
        """Test an incremental remove deletes the variants."""
        source = make_image(tmp_path / 'images' / 'logo.png')
        main(['sync', '-q'] + tree_args(tmp_path))
        os.remove(source)

        result = main(['sync', '-q', '--remove', source] + tree_args(tmp_path))

        assert result == 0
        assert os.listdir(tmp_path / '.images') == []

    def test_sync_reports_failures(self, tmp_path, write_file):
        """Test an undecodable image makes sync exit non-zero."""
        write_file(tmp_path / 'images' / 'broken.png', b'not an image')

        args = create_parser().parse_args(['sync', '-q'] + tree_args(tmp_path))
        result = cmd_sync(args)

        assert result == 1

    def test_sync_unexpected_error(self, tmp_path, mocker):
        """Test an unexpected pass failure exits with 1."""
        mocker.patch('variantgen.cli.Reconciler', side_effect=RuntimeError('disk full'))

        assert main(['sync', '-q'] + tree_args(tmp_path)) == 1

    def test_watch_runs_initial_pass_and_drains(self, tmp_path, make_image, mocker):
        """Test watch starts the observer, syncs, then stops cleanly."""
        make_image(tmp_path / 'images' / 'logo.png')
        derived_at_start = []
        observer = mocker.MagicMock()
        observer.is_alive.side_effect = [True, False]

        def start(handler):
            derived_at_start.append(os.path.exists(tmp_path / '.images'))
            late = make_image(tmp_path / 'images' / 'late.png')
            # Recorded before the initial pass runs
            handler.aggregator.add(late)
            return observer

        mocker.patch('variantgen.watch_handler.start_observer', side_effect=start)
        run = mocker.spy(Reconciler, 'run')
        mocker.patch('variantgen.cli.time.sleep')

        result = main(['watch', '--debounce', '30'] + tree_args(tmp_path))

        assert result == 0
        assert derived_at_start == [False]
        observer.stop.assert_called_once()
        observer.join.assert_called_once()
        assert sorted(os.listdir(tmp_path / '.images')) == [
            'late@1x.png', 'late@1x.webp', 'late@2x.png', 'late@2x.webp',
            'logo@1x.png', 'logo@1x.webp', 'logo@2x.png', 'logo@2x.webp',
        ]
        assert [c.args[1:] for c in run.call_args_list] == [
            (),
            (AddPaths((str(tmp_path / 'images' / 'late.png'),)),),
        ]

    def test_watch_initial_pass_failure_stops_observer(self, tmp_path, mocker):
        observer = mocker.MagicMock()
        mocker.patch('variantgen.watch_handler.start_observer', return_value=observer)
        mocker.patch('variantgen.cli.Reconciler').return_value.run.side_effect = RuntimeError('disk full')

        assert main(['watch'] + tree_args(tmp_path)) == 1
        observer.stop.assert_called_once()
        observer.join.assert_called_once()

    def test_srcset(self, tmp_path, capsys):
        result = main(['srcset', 'logo', '-f', 'webp', '--base-url', '/img'] + tree_args(tmp_path))

        assert result == 0
        assert capsys.readouterr().out.strip() == '/img/logo@1x.webp 1x,/img/logo@2x.webp 2x'
