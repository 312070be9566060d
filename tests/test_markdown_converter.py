"""Tests for converting exported document HTML into markdown documents."""

from unittest import mock

import pytest

from converters import ConversionError, MarkdownConverter, convert_document
from models import DocumentDescriptor, ExportedDocument


@pytest.fixture
def converter():
    return MarkdownConverter()


class TestConvertDocument:
    """Title extraction and body conversion."""

    def test_styled_span_scenario(self, converter):
        html = (
            '<body><h1>Doc</h1><p><span style="color:red;font-size:9pt;'
            'font-weight:bold">hi</span></p></body>'
        )

        result = converter.convert_document(html)

        assert result.title == 'Doc'
        assert '<span style="font-weight:bold">hi</span>' in result.body
        assert result.tags == ()

    def test_title_is_removed_from_body(self, converter):
        result = converter.convert_document('<body><h1>My Title</h1><p>Hello</p></body>')

        assert result.title == 'My Title'
        assert result.body == 'Hello'
        assert 'My Title' not in result.body

    def test_title_only_document_has_empty_body(self, converter):
        result = converter.convert_document('<html><body><p class="title">Only</p></body></html>')

        assert result.title == 'Only'
        assert result.body == ''

    def test_headings_use_atx_style(self, converter):
        result = converter.convert_document('<body><h1>T</h1><h2>Section</h2><p>Text</p></body>')

        assert result.body.startswith('## Section')

    def test_lists_use_dash_bullets(self, converter):
        result = converter.convert_document('<body><h1>T</h1><ul><li>one</li><li>two</li></ul></body>')

        assert '- one' in result.body
        assert '- two' in result.body

    def test_tracked_link_is_resolved(self, converter):
        html = (
            '<body><h1>T</h1><p><a href="https://example.com/redirect?q='
            'https%3A%2F%2Ftarget.example%2Fpage">target</a></p></body>'
        )

        result = converter.convert_document(html)

        assert '[target](https://target.example/page)' in result.body
        assert 'example.com/redirect' not in result.body

    def test_fragment_link_is_unchanged(self, converter):
        result = converter.convert_document('<body><h1>T</h1><p><a href="#note1">see note</a></p></body>')

        assert '[see note](#note1)' in result.body

    def test_color_only_span_keeps_its_text(self, converter):
        html = '<body><h1>T</h1><p><span style="color:#ff0000">red</span> words</p></body>'

        result = converter.convert_document(html)

        assert '<span>red</span>' in result.body
        assert 'style' not in result.body

    def test_image_is_embedded_as_html(self, converter):
        html = '<body><h1>T</h1><p><img src="https://img.example/a.png" style="width: 100px" alt="a"></p></body>'

        result = converter.convert_document(html)

        assert '<img' in result.body
        assert 'src="https://img.example/a.png"' in result.body

    def test_export_artifacts_do_not_survive(self, converter):
        html = (
            '<body><p id="t1" class="title"><span id="s0">Title</span></p>'
            '<p><span></span></p>'
            '<h2 id="h.abc"><span style="font-size:14pt">Heading</span></h2>'
            '<p><span style="color:#000;font-style:italic">styled</span></p>'
            '<p><span></span></p></body>'
        )

        result = converter.convert_document(html)

        assert result.title == 'Title'
        assert 'id=' not in result.body
        assert 'color' not in result.body
        assert 'font-size' not in result.body
        assert '<span></span>' not in result.body
        assert '<span style="font-style:italic">styled</span>' in result.body

    def test_empty_paragraphs_before_title_are_skipped(self, converter):
        result = converter.convert_document('<body><p><span></span></p><h1>Real</h1><p>x</p></body>')

        assert result.title == 'Real'

    def test_literal_markup_in_text_is_escaped(self, converter):
        result = converter.convert_document('<body><h1>T</h1><p>use a &lt;b&gt; tag</p></body>')

        assert result.body == r'use a \<b\> tag'

    def test_body_has_no_front_matter_fence(self, converter):
        result = converter.convert_document('<body><h1>T</h1><p>Hello</p></body>')

        assert not result.body.startswith('---')


class TestConversionProperties:

    HTML = (
        '<html><head><style>.c1{color:red}</style></head><body>'
        '<h1 id="x">Guide</h1><p><span style="font-weight:bold">bold</span> and '
        '<a href="https://www.google.com/url?q=https://e.org/doc&amp;sa=D">link</a></p>'
        '<ul><li>item</li></ul></body></html>'
    )

    def test_conversion_is_deterministic(self, converter):
        first = converter.convert_document(self.HTML)
        second = MarkdownConverter().convert_document(self.HTML)

        assert first == second

    def test_input_string_is_not_modified(self, converter):
        html = str(self.HTML)

        converter.convert_document(html)

        assert html == self.HTML

    def test_reconverting_output_reintroduces_no_artifacts(self, converter):
        result = converter.convert_document(self.HTML)
        again = converter.convert_document(f'<body><h1>{result.title}</h1>{result.body}</body>')

        assert 'id=' not in again.body
        assert 'color' not in again.body
        assert '<span></span>' not in again.body


class TestConversionErrors:

    def test_missing_body_raises(self, converter):
        with pytest.raises(ConversionError):
            converter.convert_document('')

    def test_exported_document_error_names_document(self, converter):
        document = ExportedDocument(
            descriptor=DocumentDescriptor(id='d1', name='Broken'),
            raw_html=''
        )

        with pytest.raises(ConversionError, match="Broken"):
            converter.convert_exported_document(document)

    def test_unexpected_error_becomes_conversion_error(self, converter):
        document = ExportedDocument(
            descriptor=DocumentDescriptor(id='d1', name='Deep'),
            raw_html='<body><h1>Deep</h1><p>x</p></body>'
        )

        with mock.patch.object(converter, 'convert_soup', side_effect=RecursionError('too deep')):
            with pytest.raises(ConversionError, match="Deep.*too deep") as excinfo:
                converter.convert_exported_document(document)

        assert isinstance(excinfo.value.__cause__, RecursionError)


class TestExportedDocumentConversion:

    def test_tags_are_the_tag_path(self, converter):
        document = ExportedDocument(
            descriptor=DocumentDescriptor(id='d1', name='Doc', tag_path=('Eng', 'Backend')),
            raw_html='<body><h1>Doc</h1><p>Hi</p></body>'
        )

        result = converter.convert_exported_document(document)

        assert result.tags == ('Eng', 'Backend')
        assert result.title == 'Doc'

    def test_module_level_convert_document(self):
        result = convert_document('<body><h1>Doc</h1><p>Hello</p></body>')

        assert (result.title, result.body, result.tags) == ('Doc', 'Hello', ())
