import logging

import pytest

from fieldcrawl.config import CrawlerConfig
from fieldcrawl.core.runner import CrawlJob, CrawlRunner
from fieldcrawl.exceptions import ConfigurationError, ErrorCode
from fieldcrawl.storage import TeaserIndex


@pytest.fixture
def config():
    return CrawlerConfig(session_type='simple', retries=1, workers=2)


def test_run_keeps_job_order(config, session_factory, make_source, console):
    runner = CrawlRunner(config, session_factory=session_factory, console=console)
    jobs = [
        CrawlJob(make_source('first')),
        CrawlJob(make_source('second', teaser_loading={'keywords': 'cloud'}), details=False),
    ]

    results = runner.run(jobs)

    assert [result.source for result in results] == ['first', 'second']
    assert len(results[0].teasers) == 3
    assert len(results[0].details) == 3
    assert results[0].success
    assert [teaser.title for teaser in results[1].teasers] == ['Cloud Costs Fall']
    assert results[1].details == []
    assert len(session_factory.created) == 2
    assert all(session.closed for session in session_factory.created)


def test_extraction_failures_are_returned(config, session_factory, make_source, console):
    runner = CrawlRunner(config, session_factory=session_factory, console=console)

    result = runner.run_job(CrawlJob(make_source(urls=[''])))

    assert not result.success
    assert [failure.code for failure in result.failures] == [ErrorCode.MISSING_URL]
    assert session_factory.created[0].closed


def test_session_failures_are_returned(config, session_factory, make_source, console):
    runner = CrawlRunner(config, session_factory=session_factory, console=console)

    result = runner.run_job(CrawlJob(make_source(urls=['https://example.com/unknown'])))

    assert [failure.code for failure in result.failures] == [ErrorCode.EXCEPTION]
    assert result.failures[0].location == 'https://example.com/unknown'


def test_article_failures_are_collected(config, session_factory, make_source, console):
    runner = CrawlRunner(config, session_factory=session_factory, console=console)
    source = make_source(article_fields=[{'root': 'div.missing', 'title': 'h1'}])

    result = runner.run_job(CrawlJob(source))

    assert len(result.details) == 3
    assert all(details.error_code == ErrorCode.MISSING_ROOT for details in result.details)
    assert [failure.code for failure in result.failures] == [ErrorCode.MISSING_ROOT] * 3
    assert result.events


def test_configuration_errors_propagate(config, session_factory, make_source, console):
    runner = CrawlRunner(config, session_factory=session_factory, console=console)

    with pytest.raises(ConfigurationError):
        runner.run([CrawlJob(make_source(teaser_fields=[{'root': '', 'title': 'h2'}]))])
    assert session_factory.created[0].closed


def test_shared_teaser_index(config, session_factory, make_source, console):
    index = TeaserIndex()
    runner = CrawlRunner(config, session_factory=session_factory, teaser_index=index, console=console)

    runner.run_job(CrawlJob(make_source(), details=False))
    second = runner.run_job(CrawlJob(make_source(), details=False))

    assert len(index) == 1
    assert len(second.teasers) == 3
    assert session_factory.created[1].visits == []


def test_default_session_follows_config(mocker, console):
    create_session = mocker.patch('fieldcrawl.core.runner.create_session')

    CrawlRunner(CrawlerConfig(timeout=10, headless=False), console=console).session_factory()

    create_session.assert_called_once_with('playwright', timeout=10, headless=False)


def test_print_summary(config, session_factory, make_source, console):
    runner = CrawlRunner(config, session_factory=session_factory, console=console)
    results = runner.run([CrawlJob(make_source('example'))])

    runner.print_summary(results)

    output = console.file.getvalue()
    assert 'Crawl Summary' in output
    assert 'example' in output


def test_unexpected_errors_do_not_stop_other_jobs(pages, make_session, make_source, console):
    class StuckSession(make_session):
        def click(self, selector, max_wait=0, interval=0):
            raise TimeoutError('Locator.click: Timeout 5000ms exceeded')

    sessions = iter([StuckSession(pages), make_session(pages)])
    config = CrawlerConfig(session_type='simple', retries=1, workers=1)
    runner = CrawlRunner(config, session_factory=lambda: next(sessions), console=console)
    jobs = [
        CrawlJob(make_source('stuck', teaser_loading={'more-link': 'button.more'}), details=False),
        CrawlJob(make_source('healthy'), details=False),
    ]

    stuck, healthy = runner.run(jobs)

    assert [failure.code for failure in stuck.failures] == [ErrorCode.EXCEPTION]
    assert 'TimeoutError' in stuck.failures[0].message
    assert stuck.teasers == []
    assert healthy.success
    assert len(healthy.teasers) == 3


def test_log_file_is_set_up_from_config(mocker, tmp_path, console):
    setup = mocker.patch('fieldcrawl.core.runner.setup_local_logging', return_value=tmp_path / 'crawl.log')

    runner = CrawlRunner(CrawlerConfig(log_file=True, log_level='debug'), console=console)

    setup.assert_called_once_with('DEBUG')
    assert runner.log_file == tmp_path / 'crawl.log'


def test_log_level_applies_to_package_loggers(mocker, console):
    setup = mocker.patch('fieldcrawl.core.runner.setup_local_logging')
    package_logger = logging.getLogger('fieldcrawl')
    level = package_logger.level

    try:
        runner = CrawlRunner(CrawlerConfig(log_level='warning'), console=console)

        assert package_logger.level == logging.WARNING
        assert runner.log_file is None
        setup.assert_not_called()
    finally:
        package_logger.setLevel(level)
