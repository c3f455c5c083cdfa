from datetime import UTC, datetime

import pytest

from fieldcrawl.core.resolution import FieldResolver
from fieldcrawl.core.resolution.resolver import parse_srcset
from fieldcrawl.exceptions import ConfigurationError, ErrorCode
from fieldcrawl.models.fields import Field

PAGE = """
<html>
<head>
    <title>Item</title>
    <meta property="og:title" content="Meta Title">
    <meta name="description" content="Meta description">
    <meta itemprop="author" content="Jane Doe">
</head>
<body>
    <div class="item" data-id="42">
        <span class="empty"> </span>
        <span class="x">X</span>
        <h2 class="title">Title <span class="badge">New</span></h2>
        <ul class="tags"><li>ai</li><li></li><li>cloud</li></ul>
        <a class="link" href="/news/a?utm=1">Read</a>
        <div class="card" href="/news/card"></div>
        <span class="go" onclick="openUrl('https://example.com/post');">Go</span>
        <img class="hero" srcset="/img/a-400.jpg 400w, /img/a-800.jpg 800w" src="/img/a.jpg">
        <img class="plain" src="https://cdn.example.com/b.jpg">
        <div class="bg" style="color: red; background-image: url('/img/bg.jpg');"></div>
        <time>12/05/2024</time>
        <span class="price">Free</span>
    </div>
</body>
</html>
"""


@pytest.fixture
def resolver():
    return FieldResolver.from_markup(PAGE, 'https://example.com')


@pytest.fixture
def item(resolver):
    return resolver.select('div.item', resolver.document)[0]


def field(selectors, name='title'):
    if not isinstance(selectors, list):
        selectors = [selectors]
    return Field.model_validate({'name': name, 'selectors': selectors})


def test_selector_fallback_order(resolver, item, mocker):
    spy = mocker.spy(resolver, 'metatag')

    resolution = resolver.resolve(field(['.missing', '.empty', '.x', {'source': 'META', 'expr': 'og:title'}]), item)

    assert resolution.value == 'X'
    assert resolution.attempt == 2
    spy.assert_not_called()


def test_meta_selectors(resolver, item):
    assert resolver.resolve(field({'source': 'META', 'expr': 'og:title'}), item).value == 'Meta Title'
    assert resolver.resolve(field({'source': 'META', 'expr': 'description'}), item).value == 'Meta description'
    assert resolver.resolve(field({'source': 'META', 'expr': 'author'}), item).value == 'Jane Doe'


def test_missing_value(resolver, item):
    resolution = resolver.resolve(field(['.missing', '.empty']), item)

    assert not resolution.resolved
    assert resolution.code == ErrorCode.MISSING_ELEM


def test_multiple_values_are_joined(resolver, item):
    resolution = resolver.resolve(field({'expr': 'ul.tags li', 'multiple': True, 'separator': ', '}), item)

    assert resolution.value == 'ai, cloud'


def test_root_sentinel_reads_the_node_itself(resolver, item):
    assert resolver.resolve(field({'expr': '<root>', 'attribute': 'data-id'}), item).value == '42'


def test_excludes_do_not_modify_the_document(resolver, item):
    title = field({'expr': 'h2.title', 'exclude': 'span.badge'})

    first = resolver.resolve(title, item)
    second = resolver.resolve(title, item)

    assert first.value == 'Title'
    assert first == second
    assert resolver.resolve(field('h2.title'), item).value == 'Title New'


def test_resolve_anchor(resolver, item):
    assert resolver.resolve_anchor(field('a.link', 'url'), item).value == 'https://example.com/news/a'
    assert resolver.resolve_anchor(field('div.card', 'url'), item).value == 'https://example.com/news/card'


def test_resolve_anchor_unwraps_script_calls(resolver, item):
    url = field({'expr': 'span.go', 'attribute': 'onclick'}, 'url')

    assert resolver.resolve_anchor(url, item).value == 'https://example.com/post'


def test_resolve_anchor_keeps_parameters_when_asked(resolver, item):
    url = Field.model_validate({'name': 'url', 'selector': 'a.link', 'remove-parameters': False})

    assert resolver.resolve_anchor(url, item).value == 'https://example.com/news/a?utm=1'


def test_missing_anchor(resolver, item):
    resolution = resolver.resolve_anchor(field(['span.x', 'a.missing'], 'url'), item)

    assert resolution.code == ErrorCode.MISSING_ANCHOR


def test_resolve_image_from_srcset(resolver, item):
    assert resolver.resolve_image(field({'expr': 'img.hero', 'size': '800w'}, 'image'), item).value == (
        'https://example.com/img/a-800.jpg'
    )
    assert resolver.resolve_image(field('img.hero', 'image'), item).value == 'https://example.com/img/a-400.jpg'


def test_resolve_image_attribute_and_protocol(resolver, item):
    image = Field.model_validate({'name': 'image', 'selector': 'img.plain', 'force-protocol': 'http'})

    assert resolver.resolve_image(image, item).value == 'http://cdn.example.com/b.jpg'
    assert resolver.resolve_image(field({'expr': 'img.hero', 'attribute': 'src'}, 'image'), item).value == (
        'https://example.com/img/a.jpg'
    )


def test_resolve_background_image(resolver, item):
    resolution = resolver.resolve_image(field('div.bg', 'background-image'), item)

    assert resolution.value == 'https://example.com/img/bg.jpg'


def test_missing_image(resolver, item):
    assert resolver.resolve_image(field('img.missing', 'image'), item).code == ErrorCode.MISSING_IMAGE


def test_resolve_date(resolver, item):
    date = Field.model_validate({'name': 'published-date', 'selector': 'time', 'date-patterns': ['dd/MM/yyyy']})

    assert resolver.resolve_date(date, item).value == datetime(2024, 5, 12, tzinfo=UTC)


def test_resolve_date_failures(resolver, item):
    unparseable = Field.model_validate({'selector': 'time', 'date-patterns': ['yyyy-MM-dd']})
    missing = Field.model_validate({'selector': 'time.missing'})

    assert resolver.resolve_date(unparseable, item).code == ErrorCode.PARSE_DATE
    assert resolver.resolve_date(missing, item).code == ErrorCode.MISSING_ELEM


def test_validate(resolver, item):
    assert resolver.validate(field('span.x', 'validator'), item)
    assert not resolver.validate(field('span.missing', 'validator'), item)
    assert not resolver.validate(
        Field.model_validate({'selector': 'span.price', 'condition': {'expr': 'Free', 'action': 'REJECT'}}), item
    )
    assert resolver.validate(
        Field.model_validate({'selector': 'span.price', 'condition': {'expr': 'Paid', 'action': 'REJECT'}}), item
    )


def test_invalid_selector_is_a_configuration_error(resolver):
    with pytest.raises(ConfigurationError):
        resolver.select('div[', resolver.document)


def test_parse_srcset():
    srcset = 'a.jpg 1x, b.jpg 2x'

    assert parse_srcset(srcset, '2x') == 'b.jpg'
    assert parse_srcset(srcset, '3x') == 'a.jpg'
    assert parse_srcset('') == ''
