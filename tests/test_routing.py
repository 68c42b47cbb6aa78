import pytest

from pipeline.config import MB, SizeThresholds, _default_post_settings, _default_story_settings
from pipeline.routing import Route, decide_route

POST = _default_post_settings().thresholds
STORY = _default_story_settings().thresholds


@pytest.mark.parametrize(
    "size,expected",
    [
        (10 * MB, Route.DIRECT),
        (29 * MB - 1, Route.DIRECT),
        (29 * MB, Route.TRANSCODE),
        (50 * MB, Route.TRANSCODE),
        (100 * MB, Route.TRANSCODE),
        (100 * MB + 1, Route.REJECT),
        (200 * MB, Route.REJECT),
        (500 * MB, Route.REJECT),
        (500 * MB + 1, Route.LEDGER),
        (600 * MB, Route.LEDGER),
    ],
)
def test_post_bands(size, expected):
    assert decide_route(size, POST) is expected


@pytest.mark.parametrize(
    "size,expected",
    [
        (0, Route.DIRECT),
        (28 * MB, Route.DIRECT),
        (150 * MB, Route.TRANSCODE),
        (300 * MB, Route.TRANSCODE),
        (350 * MB, Route.LEDGER),
    ],
)
def test_story_has_no_reject_band(size, expected):
    assert STORY.reject_above is None
    assert decide_route(size, STORY) is expected


def test_thresholds_must_be_ordered():
    with pytest.raises(ValueError):
        SizeThresholds(direct_below=100, reject_above=50, ledger_above=200)
    with pytest.raises(ValueError):
        SizeThresholds(direct_below=100, ledger_above=50)
    with pytest.raises(ValueError):
        SizeThresholds(direct_below=0, ledger_above=50)
