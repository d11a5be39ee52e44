import json

import pytest

from community.translations import TranslationCatalog, get_catalog, supported_locales, translate


@pytest.fixture
def locale_dir(tmp_path):
    for locale, greeting in (("en", "Hello"), ("ps", "سلام")):
        folder = tmp_path / locale
        folder.mkdir()
        (folder / "common.json").write_text(
            json.dumps({"home": {"greeting": greeting}, "nav": {"members": locale}}),
            encoding="utf-8",
        )
    return tmp_path


def test_catalog_returns_locale_dictionary(locale_dir):
    catalog = TranslationCatalog(locale_dir)

    assert catalog.get("ps")["home"]["greeting"] == "سلام"
    assert catalog.is_loaded("ps")
    assert not catalog.is_loaded("en"), "Only requested locales are loaded"


def test_catalog_reads_each_locale_from_disk_once(locale_dir):
    catalog = TranslationCatalog(locale_dir)
    first = catalog.get("en")

    (locale_dir / "en" / "common.json").write_text('{"home": {"greeting": "Changed"}}', encoding="utf-8")

    assert catalog.get("en") is first, "Second lookup must come from memory"


def test_unknown_locale_falls_back_to_default(locale_dir):
    catalog = TranslationCatalog(locale_dir, default_locale="en")

    assert catalog.get("fr")["home"]["greeting"] == "Hello"
    assert not catalog.is_loaded("fr"), "Fallbacks are not cached under the missing locale"


def test_broken_default_locale_gives_empty_dictionary(tmp_path):
    (tmp_path / "en").mkdir()
    (tmp_path / "en" / "common.json").write_text("{not json", encoding="utf-8")

    assert TranslationCatalog(tmp_path).get("en") == {}


def test_translate_resolves_dotted_keys(locale_dir):
    catalog = TranslationCatalog(locale_dir)

    assert catalog.translate("en", "home.greeting") == "Hello"
    assert catalog.translate("en", "home.missing") == "home.missing"
    assert catalog.translate("en", "home.greeting.deeper", default="") == ""


def test_preload_loads_every_locale(locale_dir):
    catalog = TranslationCatalog(locale_dir)
    catalog.preload(["en", "ps"])

    assert catalog.is_loaded("en") and catalog.is_loaded("ps")


def test_shipped_catalogs_cover_both_locales():
    assert supported_locales() == ["en", "ps"]
    english = get_catalog().get("en")
    pashto = get_catalog().get("ps")

    assert set(english) == set(pashto), "Both locales should define the same sections"
    assert translate("en", "nav.members") != "nav.members"
