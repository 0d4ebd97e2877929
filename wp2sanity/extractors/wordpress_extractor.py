import csv
import sys
import xml.etree.ElementTree as ET
from urllib.parse import urlparse

from ..models.sanity_content import WordPressPost

WP_NS = 'http://wordpress.org/export/1.2/'
CONTENT_NS = 'http://purl.org/rss/1.0/modules/content/'
EXCERPT_NS = 'http://wordpress.org/export/1.2/excerpt/'

MIGRATABLE_TYPES = ('post', 'page')

# Colunas aceitas para cada campo de wp_posts (exportação de tabela ou plugin de exportação).
CSV_COLUMNS = {
    'ID': ('ID', 'id', 'Id'),
    'post_title': ('post_title', 'Title'),
    'post_content': ('post_content', 'Content'),
    'post_excerpt': ('post_excerpt', 'Excerpt'),
    'post_date': ('post_date', 'Date'),
    'post_modified': ('post_modified', 'Post Modified Date'),
    'post_status': ('post_status', 'Status'),
    'post_name': ('post_name', 'Slug'),
    'post_type': ('post_type', 'Post Type'),
    'post_parent': ('post_parent', 'Parent'),
    'menu_order': ('menu_order', 'Order'),
    'guid': ('guid', 'Permalink'),
}


def _pick(row, names):
    for name in names:
        value = row.get(name)
        if value is not None:
            return value
    return None


def _slug_from_permalink(permalink):
    if not permalink:
        return ''
    path = urlparse(permalink).path
    return path.strip('/').split('/')[-1] if path else ''


def extract_posts_from_csv(file_path):
    """Extrai registros de posts e páginas a partir de um CSV exportado do WordPress.

    Aceita tanto o dump direto da tabela ``wp_posts`` (colunas ``post_title``,
    ``post_content``...) quanto o formato dos plugins de exportação
    (``Title``, ``Content``...). Linhas de outros tipos (anexos, revisões,
    menus) são ignoradas.

    Args:
        file_path (str): O caminho para o arquivo CSV.

    Returns:
        list[WordPressPost]: Os registros na ordem do arquivo.

    Raises:
        FileNotFoundError: Se o arquivo CSV especificado não for encontrado.
        ValueError: Se ocorrer um erro durante o processamento de uma linha do CSV.
    """
    try:
        csv.field_size_limit(sys.maxsize)
    except (OverflowError, ValueError):
        csv.field_size_limit(10_000_000)

    posts = []
    # utf-8-sig para lidar com BOM no cabeçalho
    with open(file_path, mode='r', encoding='utf-8-sig', newline='') as csvfile:
        reader = csv.DictReader(csvfile)
        for row_num, row in enumerate(reader, start=2):  # Start at 2 because header is row 1
            try:
                record = {field: _pick(row, names) for field, names in CSV_COLUMNS.items()}
                post_type = (record['post_type'] or 'post').strip().lower()
                if post_type not in MIGRATABLE_TYPES:
                    continue
                record['post_type'] = post_type
                if not record['post_name'] and row.get('Permalink'):
                    record['post_name'] = _slug_from_permalink(row['Permalink'])
                record = {k: v for k, v in record.items() if v is not None}
                posts.append(WordPressPost.model_validate(record))
            except Exception as e:
                raise ValueError(f"Error processing row {row_num} in {file_path}: {e}") from e
    return posts


def _text(item, tag):
    element = item.find(tag)
    return element.text if element is not None and element.text is not None else None


def extract_posts_from_xml(file_path):
    """Extrai posts e páginas de um arquivo WXR (exportação XML do WordPress).

    Usa os namespaces ``wp:``, ``content:`` e ``excerpt:`` da exportação
    1.2. Itens que não são post nem página são ignorados.

    Args:
        file_path (str): O caminho para o arquivo XML.

    Returns:
        list[WordPressPost]: Os registros na ordem do arquivo.

    Raises:
        FileNotFoundError: Se o arquivo XML especificado não for encontrado.
        ET.ParseError: Se ocorrer um erro durante a análise do XML.
        ValueError: Se ocorrer um erro durante o processamento de um item do XML.
    """
    posts = []
    tree = ET.parse(file_path)
    root = tree.getroot()
    for item in root.findall('.//item'):
        post_id = _text(item, f'{{{WP_NS}}}post_id')
        try:
            post_type = (_text(item, f'{{{WP_NS}}}post_type') or 'post').strip().lower()
            if post_type not in MIGRATABLE_TYPES:
                continue
            permalink = _text(item, 'link') or ''
            record = {
                'ID': post_id,
                'post_title': _text(item, 'title'),
                'post_content': _text(item, f'{{{CONTENT_NS}}}encoded'),
                'post_excerpt': _text(item, f'{{{EXCERPT_NS}}}encoded'),
                'post_date': _text(item, f'{{{WP_NS}}}post_date'),
                'post_modified': _text(item, f'{{{WP_NS}}}post_modified'),
                'post_status': _text(item, f'{{{WP_NS}}}status'),
                'post_name': _text(item, f'{{{WP_NS}}}post_name') or _slug_from_permalink(permalink),
                'post_type': post_type,
                'post_parent': _text(item, f'{{{WP_NS}}}post_parent'),
                'menu_order': _text(item, f'{{{WP_NS}}}menu_order'),
                'guid': _text(item, 'guid') or permalink,
            }
            record = {k: v for k, v in record.items() if v is not None}
            posts.append(WordPressPost.model_validate(record))
        except Exception as e:
            raise ValueError(f"Error processing item with ID {post_id or 'unknown'} in {file_path}: {e}") from e
    return posts
