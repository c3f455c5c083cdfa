import pytest

from fieldcrawl.core.crawler import CrawlStatus, PublicationCrawler
from fieldcrawl.exceptions import ConfigurationError, ErrorCode, ExtractionError, SessionError
from fieldcrawl.models import ContentRequest
from fieldcrawl.storage import TeaserIndex

NEWS = 'https://example.com/news'


@pytest.fixture
def make_crawler(fake_session, console):
    def build(source, session=None, **kwargs):
        return PublicationCrawler(source, session or fake_session, console=console, retries=1, **kwargs)

    return build


def urls(teasers):
    return [teaser.attributes.url for teaser in teasers]


def test_process_teasers(make_source, make_crawler):
    crawler = make_crawler(make_source())

    teasers = crawler.process_teasers()

    assert urls(teasers) == [
        'https://example.com/news/ai-tool',
        'https://example.com/news/cloud-costs',
        'https://example.com/news/quarterly-report',
    ]
    assert teasers[0].title == 'New AI Tool'
    assert teasers[0].unique_id == 'https://example.com/news/ai-tool'
    assert teasers[0].attributes.published_date.isoformat() == '2024-05-12T00:00:00+00:00'
    assert crawler.status == CrawlStatus.DONE
    assert crawler.last_url == NEWS


def test_duplicates_keep_first_seen_position(make_source, make_crawler):
    teasers = make_crawler(make_source()).process_teasers()

    assert [teaser.title for teaser in teasers] == ['New AI Tool', 'Cloud Costs Fall', 'Quarterly Report']


def test_keywords_filter_titles(make_source, make_crawler):
    crawler = make_crawler(make_source(teaser_loading={'keywords': ['cloud', 'ai']}))

    assert [teaser.title for teaser in crawler.process_teasers()] == ['New AI Tool', 'Cloud Costs Fall']


def test_max_results_stops_enumeration(make_source, make_crawler, mocker):
    crawler = make_crawler(make_source(), max_results=2)
    spy = mocker.spy(crawler, 'build_teaser')

    teasers = crawler.process_teasers()

    assert len(teasers) == 2
    assert spy.call_count == 2


def test_max_results_spans_field_groups(make_source, make_crawler, mocker):
    teaser_fields = [
        {'root': 'div.teaser:nth-of-type(2)', 'title': 'h2', 'url': 'a'},
        {'root': 'div.teaser', 'title': 'h2', 'url': 'a'},
    ]
    crawler = make_crawler(make_source(teaser_fields=teaser_fields), max_results=2)
    spy = mocker.spy(crawler, 'build_teaser')

    teasers = crawler.process_teasers()

    assert [teaser.title for teaser in teasers] == ['Cloud Costs Fall', 'New AI Tool']
    assert spy.call_count == 2


def test_failed_teaser_is_skipped(make_source, make_crawler, make_session):
    html = """
    <html><head><title>News</title></head><body>
        <div class="teaser"><a href="/news/untitled">Read</a></div>
        <div class="teaser"><h2>Titled</h2><a href="/news/titled">Read</a></div>
    </body></html>
    """
    teaser_fields = [{'root': 'div.teaser', 'title': 'h2', 'url': 'a'}]
    crawler = make_crawler(make_source(teaser_fields=teaser_fields), session=make_session({NEWS: html}))

    teasers = crawler.process_teasers()

    assert urls(teasers) == ['https://example.com/news/titled']
    assert ErrorCode.MISSING_ELEM in crawler.events.codes()


def test_optional_field_is_left_empty(make_source, make_crawler, make_session):
    html = '<html><head><title>News</title></head><body><div class="teaser"><a href="/a">Go</a></div></body></html>'
    teaser_fields = [{'root': 'div.teaser', 'title': {'selector': 'h2', 'optional': True}, 'url': 'a'}]
    crawler = make_crawler(make_source(teaser_fields=teaser_fields), session=make_session({NEWS: html}))

    teasers = crawler.process_teasers()

    assert len(teasers) == 1
    assert teasers[0].title == ''
    assert len(crawler.events) == 0


def test_validator_rejects_teasers(make_source, make_crawler):
    teaser_fields = [{'root': 'div.teaser', 'validator': 'a[href*="cloud"]', 'title': 'h2', 'url': 'a'}]
    crawler = make_crawler(make_source(teaser_fields=teaser_fields))

    teasers = crawler.process_teasers()

    assert [teaser.title for teaser in teasers] == ['Cloud Costs Fall']
    assert crawler.events.codes().count(ErrorCode.NONE) == 3


def test_missing_image_is_only_reported(make_source, make_crawler):
    teaser_fields = [{'root': 'div.teaser', 'title': 'h2', 'url': 'a', 'image': 'img'}]
    crawler = make_crawler(make_source(teaser_fields=teaser_fields))

    teasers = crawler.process_teasers()

    assert len(teasers) == 3
    assert crawler.events.codes().count(ErrorCode.MISSING_IMAGE) == 4
    assert not crawler.events.persistent


def test_error_page_stops_the_listing(make_source, make_crawler, make_session, error_html):
    crawler = make_crawler(make_source(), session=make_session({NEWS: error_html}))

    teasers = crawler.process_teasers()

    assert teasers == []
    assert crawler.error_code == ErrorCode.ERROR_PAGE
    assert crawler.events.codes() == [ErrorCode.ERROR_PAGE]
    assert crawler.status != CrawlStatus.DONE


def test_empty_root_is_a_configuration_error(make_source, make_crawler):
    crawler = make_crawler(make_source(teaser_fields=[{'root': '', 'title': 'h2'}]))

    with pytest.raises(ConfigurationError):
        crawler.process_teasers()
    assert crawler.error_code == ErrorCode.EMPTY_ROOT


def test_empty_url_raises_missing_url(make_source, make_crawler):
    crawler = make_crawler(make_source(urls=['']))

    with pytest.raises(ExtractionError) as exc_info:
        crawler.process_teasers()
    assert exc_info.value.code == ErrorCode.MISSING_URL


def test_load_teaser_page_order(make_source, make_crawler, fake_session):
    loading = {
        'wait': 100,
        'sleep': 250,
        'selector': 'div.teaser',
        'max-wait': 5,
        'scroll-y': 600,
        'move-to': 'button.more',
        'more-link': {'selector': 'button.more', 'count': 2},
    }
    crawler = make_crawler(make_source(teaser_loading=loading))

    assert crawler.load_teaser_page(NEWS)
    assert fake_session.calls == [
        ('implicit_wait', 100),
        ('navigate', NEWS),
        ('wait_for_selector', 'div.teaser'),
        ('click', 'button.more'),
        ('click', 'button.more'),
        ('scroll_by', 0, 600),
        ('move_to', 'button.more'),
        ('sleep', 250),
    ]
    assert len(crawler.events) == 0


def test_loading_same_url_twice_is_a_no_op(make_source, make_crawler, fake_session):
    crawler = make_crawler(make_source())

    assert crawler.load_teaser_page(NEWS)
    assert crawler.load_teaser_page(NEWS)
    assert fake_session.visits == [NEWS]


def test_missing_more_link_stops_clicking(make_source, make_crawler, fake_session):
    loading = {'more-link': {'selector': 'a.next', 'count': 3}, 'move-to': 'footer'}
    crawler = make_crawler(make_source(teaser_loading=loading))

    crawler.load_teaser_page(NEWS)

    assert fake_session.calls.count(('click', 'a.next')) == 1
    assert crawler.events.codes() == [ErrorCode.MISSING_MORE, ErrorCode.MISSING_MOVE]


def test_request_options(make_source, make_crawler, make_session, listing_html):
    source = make_source()
    request = ContentRequest(urls=(NEWS,), trailing_slash=True)
    source = source.model_copy(update={'teasers': source.teasers.model_copy(update={'request': request})})
    session = make_session({f'{NEWS}/': listing_html})

    assert len(make_crawler(source, session=session).process_teasers()) == 3
    assert session.visits == [f'{NEWS}/']


def test_anti_cache_parameter(make_source, make_crawler, fake_session):
    source = make_source()
    request = ContentRequest(urls=(NEWS,), anti_cache=True)
    source = source.model_copy(update={'teasers': source.teasers.model_copy(update={'request': request})})

    with pytest.raises(SessionError):
        make_crawler(source).process_teasers()
    assert fake_session.calls[1][1].startswith(f'{NEWS}?_=')


def test_teaser_cache_is_reused(make_source, make_crawler, make_session):
    index = TeaserIndex()
    first = make_crawler(make_source(), teaser_index=index)
    first.process_teasers(cache=True)

    offline = make_session({})
    second = make_crawler(make_source(), session=offline, teaser_index=index)
    teasers = second.process_teasers()

    assert len(index) == 1
    assert urls(teasers) == urls(first.teasers)
    assert offline.visits == []
