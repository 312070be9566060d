"""Tests for writing converted documents to markdown files."""

import os
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from unittest import mock

import pytest
import yaml

from exporters import FilenameCollisionError, MarkdownExporter, WriteError
from models import ConvertedDocument, DocumentDescriptor, ExportedDocument


def split_front_matter(content):
    assert content.startswith('---\n')
    header, body = content[4:].split('\n---\n', 1)
    return yaml.safe_load(header), body


@pytest.fixture
def exporter(export_config):
    return MarkdownExporter(export_config)


@pytest.fixture
def converted():
    return ConvertedDocument(title='Design Notes', body='## Goals\n\nShip it.', tags=('Eng', 'Backend'))


class TestRenderDocument:

    def test_front_matter_then_body(self, exporter, converted):
        content = exporter.render_document(converted)

        header, body = split_front_matter(content)
        assert header == {'title': 'Design Notes', 'tags': ['Eng', 'Backend']}
        assert body == '\n## Goals\n\nShip it.\n'

    def test_key_order_and_block_style(self, exporter, converted):
        content = exporter.render_document(converted)

        assert content.startswith('---\ntitle: Design Notes\ntags:\n- Eng\n- Backend\n---\n\n')

    def test_empty_tags_and_body(self, exporter):
        content = exporter.render_document(ConvertedDocument(title='Root doc', body=''))

        header, body = split_front_matter(content)
        assert header == {'title': 'Root doc', 'tags': []}
        assert content.endswith('---\n\n\n')

    def test_title_needing_quotes_round_trips(self, exporter):
        title = 'Q3: "Plan" # draft'

        header, _ = split_front_matter(exporter.render_document(ConvertedDocument(title=title, body='x')))

        assert header['title'] == title

    def test_unicode_is_kept_readable(self, exporter):
        content = exporter.render_document(ConvertedDocument(title='Café résumé', body='ü', tags=('Équipe',)))

        assert 'Café résumé' in content
        assert 'Équipe' in content

    def test_source_metadata_when_enabled(self, export_config, converted):
        export_config['export']['include_source_metadata'] = True
        exporter = MarkdownExporter(export_config)
        exported = ExportedDocument(
            descriptor=DocumentDescriptor(
                id='abc123',
                name='Design Notes',
                created_time=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
                modified_time=datetime(2024, 2, 3, 4, 5, 6, tzinfo=timezone.utc),
                tag_path=('Eng', 'Backend')
            ),
            raw_html='<body></body>'
        )

        header, _ = split_front_matter(exporter.render_document(converted, exported))

        assert header['source_id'] == 'abc123'
        assert header['created_time'] == '2024-01-02T03:04:05+00:00'
        assert header['modified_time'] == '2024-02-03T04:05:06+00:00'

    def test_source_metadata_disabled_by_default(self, exporter, converted):
        exported = ExportedDocument(descriptor=DocumentDescriptor(id='abc', name='n'), raw_html='')

        header, _ = split_front_matter(exporter.render_document(converted, exported))

        assert 'source_id' not in header


class TestOutputPaths:

    def test_name_gets_md_suffix(self, exporter):
        path = exporter.output_path_for(DocumentDescriptor(id='1', name='Design Notes'))

        assert path == exporter.output_directory / 'Design Notes.md'

    def test_existing_md_suffix_is_kept(self, exporter):
        path = exporter.output_path_for(DocumentDescriptor(id='1', name='README.md'))

        assert path.name == 'README.md'

    def test_path_separators_are_replaced(self, exporter):
        path = exporter.output_path_for(DocumentDescriptor(id='1', name='../Q1/Q2: plan?'))

        assert path.parent == exporter.output_directory
        assert path.name == '.._Q1_Q2_ plan_.md'

    def test_empty_name_falls_back(self, exporter):
        assert exporter.output_path_for(DocumentDescriptor(id='1', name='')).name == 'untitled.md'
        assert exporter.output_path_for(DocumentDescriptor(id='2', name='..')).name == 'untitled.md'

    def test_slugified_names(self, export_config):
        export_config['export']['slugify_filenames'] = True
        exporter = MarkdownExporter(export_config)

        path = exporter.output_path_for(DocumentDescriptor(id='1', name='Design Notes (v2)'))

        assert path.name == 'design-notes-v2.md'

    def test_output_dir_override(self, export_config, tmp_path):
        exporter = MarkdownExporter(export_config, output_dir=str(tmp_path / 'other'))

        assert exporter.output_directory == tmp_path / 'other'

    def test_collisions_are_rejected(self, exporter):
        documents = [
            DocumentDescriptor(id='1', name='Notes'),
            DocumentDescriptor(id='2', name='Other'),
            DocumentDescriptor(id='3', name='Notes'),
        ]

        with pytest.raises(FilenameCollisionError, match="'Notes' \\(1\\) and 'Notes' \\(3\\)"):
            exporter.check_collisions(documents)

    def test_collision_is_a_write_error(self):
        assert issubclass(FilenameCollisionError, WriteError)

    def test_distinct_names_resolve_in_order(self, exporter):
        documents = [DocumentDescriptor(id='1', name='B'), DocumentDescriptor(id='2', name='A')]

        targets = exporter.check_collisions(documents)

        assert [(d.id, p.name) for d, p in targets] == [('1', 'B.md'), ('2', 'A.md')]


class TestWrite:

    def test_creates_parent_directories(self, exporter, converted):
        target = exporter.output_directory / 'nested' / 'Design Notes.md'

        written = exporter.write(target, converted)

        assert written == target
        assert target.read_text(encoding='utf-8') == exporter.render_document(converted)

    def test_overwrites_existing_file(self, exporter, converted):
        target = exporter.output_directory / 'Design Notes.md'
        target.parent.mkdir(parents=True)
        target.write_text('old content', encoding='utf-8')

        exporter.write(target, converted)

        assert 'old content' not in target.read_text(encoding='utf-8')
        assert 'Ship it.' in target.read_text(encoding='utf-8')

    def test_no_temporary_files_left(self, exporter, converted):
        target = exporter.output_directory / 'Design Notes.md'

        exporter.write(target, converted)

        assert os.listdir(exporter.output_directory) == ['Design Notes.md']

    def test_failed_replace_cleans_up_and_raises(self, exporter, converted):
        target = exporter.output_directory / 'Design Notes.md'
        target.parent.mkdir(parents=True)
        target.write_text('previous', encoding='utf-8')

        with mock.patch('exporters.markdown_exporter.os.replace', side_effect=OSError('disk full')):
            with pytest.raises(WriteError, match='disk full'):
                exporter.write(target, converted)

        assert os.listdir(exporter.output_directory) == ['Design Notes.md']
        assert target.read_text(encoding='utf-8') == 'previous'
        assert exporter.stats['total_errors'] == 1

    def test_stats_are_counted(self, exporter, converted):
        exporter.write(exporter.output_directory / 'a.md', converted)
        exporter.write(exporter.output_directory / 'b.md', converted)

        assert exporter.stats['total_documents_written'] == 2
        assert exporter.stats['total_bytes_written'] > 0

    def test_stats_are_counted_across_threads(self, exporter, converted):
        size = len(exporter.render_document(converted).encode('utf-8'))
        paths = [exporter.output_directory / f'doc-{i}.md' for i in range(40)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda path: exporter.write(path, converted), paths))

        assert exporter.stats['total_documents_written'] == 40
        assert exporter.stats['total_bytes_written'] == 40 * size

    def test_prepare_output_directory(self, exporter):
        assert not exporter.output_directory.exists()

        exporter.prepare_output_directory()

        assert exporter.output_directory.is_dir()

    def test_prepare_output_directory_over_a_file(self, export_config, tmp_path):
        blocker = tmp_path / 'blocker'
        blocker.write_text('x', encoding='utf-8')
        exporter = MarkdownExporter(export_config, output_dir=str(blocker / 'out'))

        with pytest.raises(WriteError):
            exporter.prepare_output_directory()
