from transcription.postprocess import DEFAULT_ARTIFACT_MARKER, clean_transcript


def test_replaces_every_marker():
    text = "Merhaba Altyazı M.K. dünya Altyazı M.K."
    assert clean_transcript(text) == "Merhaba . dünya ."


def test_text_without_marker_is_unchanged():
    assert clean_transcript("hello world") == "hello world"


def test_marker_match_is_exact():
    assert clean_transcript("altyazı m.k.") == "altyazı m.k."


def test_custom_and_empty_marker():
    assert clean_transcript("a [music] b", "[music]") == "a . b"
    assert clean_transcript(DEFAULT_ARTIFACT_MARKER, "") == DEFAULT_ARTIFACT_MARKER
