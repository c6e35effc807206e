import pytest

from smartpharmacy import config
from smartpharmacy.services import catalog as catalog_module
from smartpharmacy.services.catalog import CatalogLoadError, get_catalog, invalidate_catalog, load_catalog


class TestResolve:
    def test_exact_trade_name_wins_over_earlier_substring(self, catalog):
        # "Panadol Advance" also contains "panadol", exact match must still win
        assert catalog.resolve("panadol advance").trade_name == "Panadol Advance"
        assert catalog.resolve("  PANADOL ").trade_name == "Panadol"

    def test_trade_name_substring(self, catalog):
        assert catalog.resolve("marev").trade_name == "Marevan"

    def test_active_ingredient_substring(self, catalog):
        assert catalog.resolve("ibuprofen").trade_name == "Brufen"

    def test_first_in_catalog_order_within_tier(self, catalog):
        # both Panadol entries contain "anado"; the first stored one wins
        assert catalog.resolve("anado").trade_name == "Panadol"
        assert catalog.resolve("paracetamol").trade_name == "Panadol"

    def test_no_match_and_blank(self, catalog):
        assert catalog.resolve("unobtainium") is None
        assert catalog.resolve("   ") is None
        assert catalog.resolve(None) is None

    def test_round_trip_for_every_entry(self, catalog):
        for entry in catalog.entries:
            assert catalog.resolve(entry.trade_name).trade_name == entry.trade_name

    def test_idempotent(self, catalog):
        for q in ("panadol", "marev", "ibuprofen", "unobtainium"):
            assert catalog.resolve(q) == catalog.resolve(q)

    def test_trade_name_only_resolution_ignores_ingredient(self, catalog):
        assert catalog.resolve_trade_name("ibuprofen") is None
        assert catalog.resolve_trade_name("bruf").trade_name == "Brufen"


class TestSearch:
    def test_hits_on_either_field_in_storage_order(self, catalog):
        names = [e.trade_name for e in catalog.search("paracetamol")]
        assert names == ["Panadol", "Panadol Advance", "Abimol", "Adol", "Congestal"]

    def test_limit(self, catalog):
        assert len(catalog.search("a", limit=3)) == 3

    def test_blank_query(self, catalog):
        assert catalog.search("") == []
        assert catalog.search("  ") == []

    def test_idempotent(self, catalog):
        assert catalog.search("pan") == catalog.search("pan")


class TestLoading:
    def test_packaged_catalog(self):
        cat = load_catalog(config.CATALOG_PATH)
        assert len(cat) > 20
        panadol = cat.resolve("Panadol")
        assert panadol.active_ingredient == "Paracetamol"
        assert panadol.avg_price == 15.0
        assert cat.resolve("Adol").avg_price is None
        assert cat.resolve("Congestal").active_ingredient.startswith("Paracetamol, Pseudoephedrine")

    def test_skips_incomplete_rows_and_bad_prices(self, tmp_path):
        csv = tmp_path / "drugs.csv"
        csv.write_text(
            "Trade_Name,Active_Ingredient,avg_price\n"
            "Alpha,Foo,12.5\n"
            ",Bar,3\n"
            "Gamma,,4\n"
            "Delta,Baz,n/a\n",
            encoding="utf-8",
        )
        cat = load_catalog(str(csv))
        assert [e.trade_name for e in cat.entries] == ["Alpha", "Delta"]
        assert cat.entries[0].avg_price == 12.5
        assert cat.entries[1].avg_price is None
        assert cat.entries[1].id == "4"

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogLoadError):
            load_catalog(str(tmp_path / "nope.csv"))

    def test_get_catalog_is_cached_until_invalidated(self, monkeypatch):
        invalidate_catalog()
        calls = []
        real = catalog_module.load_catalog

        def counting_load(*args, **kwargs):
            calls.append(1)
            return real(*args, **kwargs)

        monkeypatch.setattr(catalog_module, "load_catalog", counting_load)
        first = get_catalog()
        assert get_catalog() is first
        assert len(calls) == 1

        invalidate_catalog()
        assert get_catalog() is not first
        assert len(calls) == 2
        invalidate_catalog()
