from itertools import combinations

from smartpharmacy.schemas import DrugRef
from smartpharmacy.services.alternatives import find_alternatives
from smartpharmacy.services.allergy import check_allergy
from smartpharmacy.services.interactions import RULES_DB, check_interactions, lookup_interaction


def ref(trade, active):
    return DrugRef(trade_name=trade, active_ingredient=active)


class TestInteractions:
    def test_warfarin_ibuprofen_is_high(self):
        hits = check_interactions([ref("X", "warfarin"), ref("Y", "ibuprofen")])
        assert len(hits) == 1
        assert hits[0].severity == "high"
        assert hits[0].a.trade_name == "X"
        assert hits[0].b.trade_name == "Y"

    def test_symmetric(self):
        x, y = ref("X", "warfarin"), ref("Y", "ibuprofen")
        forward = check_interactions([x, y])[0]
        backward = check_interactions([y, x])[0]
        assert (forward.severity, forward.summary) == (backward.severity, backward.summary)

    def test_normalizes_but_does_not_substring_match(self):
        assert len(check_interactions([ref("A", "  Warfarin "), ref("B", "ASPIRIN")])) == 1
        assert check_interactions([ref("A", "warfarin sodium"), ref("B", "ibuprofen")]) == []

    def test_no_rule_no_hit(self):
        assert check_interactions([ref("A", "paracetamol"), ref("B", "ibuprofen")]) == []

    def test_sorted_by_severity_then_pair_order(self):
        items = [
            ref("Glucophage", "metformin"),
            ref("Beer", "alcohol"),
            ref("Marevan", "warfarin"),
            ref("Aspocid", "aspirin"),
            ref("Brufen", "ibuprofen"),
        ]
        hits = check_interactions(items)
        assert [h.severity for h in hits] == ["high", "high", "medium"]
        assert [(h.a.trade_name, h.b.trade_name) for h in hits] == [
            ("Marevan", "Aspocid"),
            ("Marevan", "Brufen"),
            ("Glucophage", "Beer"),
        ]

    def test_hits_bounded_and_backed_by_rules(self):
        items = [ref(str(i), a) for i, a in enumerate(
            ["warfarin", "ibuprofen", "aspirin", "isotretinoin", "vitamin a", "metformin"])]
        hits = check_interactions(items)
        n = len(items)
        assert len(hits) <= n * (n - 1) // 2
        for h in hits:
            assert lookup_interaction(h.a.active_ingredient, h.b.active_ingredient) is not None
        assert len(hits) == 3

    def test_rule_table_pairs(self):
        for a, b in combinations(["warfarin", "ibuprofen", "aspirin"], 2):
            expected = {a, b} != {"ibuprofen", "aspirin"}
            assert (lookup_interaction(a, b) is not None) is expected
        assert len(RULES_DB) == 4

    def test_idempotent(self):
        items = [ref("Marevan", "warfarin"), ref("Brufen", "ibuprofen"), ref("Aspocid", "aspirin")]
        assert check_interactions(items) == check_interactions(items)


class TestAllergy:
    def test_exact_hit(self):
        r = check_allergy("paracetamol", ["paracetamol"])
        assert r.hit is True
        assert r.matched == ["paracetamol"]
        assert r.level == "warn"

    def test_miss(self):
        r = check_allergy("paracetamol", ["ibuprofen"])
        assert r.hit is False
        assert r.matched == []

    def test_both_directions_and_all_matches(self):
        r = check_allergy("Amoxicillin + Clavulanic Acid", ["AMOXICILLIN", " penicillin ", "clavulanic"])
        assert r.matched == ["amoxicillin", "clavulanic"]
        r = check_allergy("aspirin", ["aspirin and other nsaids"])
        assert r.matched == ["aspirin and other nsaids"]

    def test_blank_ingredient_never_matches(self):
        assert check_allergy("  ", ["aspirin"]).hit is False
        assert check_allergy(None, [""]).hit is False

    def test_blank_allergens_ignored(self):
        assert check_allergy("aspirin", ["", "  "]).hit is False

    def test_idempotent(self):
        allergens = ["penicillin", "amoxicillin"]
        first = check_allergy("Amoxicillin", allergens)
        assert check_allergy("Amoxicillin", allergens) == first
        assert allergens == ["penicillin", "amoxicillin"]


class TestAlternatives:
    def test_ranked_by_price_distance_unpriced_last(self, catalog):
        alts = find_alternatives(catalog, "Paracetamol", "Panadol", 15)
        assert [a.trade_name for a in alts] == ["Abimol", "Panadol Advance", "Adol"]

    def test_never_includes_excluded_or_other_ingredients(self, catalog):
        for entry in catalog.entries:
            alts = find_alternatives(catalog, entry.active_ingredient, entry.trade_name, entry.avg_price)
            for a in alts:
                assert a.trade_name.lower() != entry.trade_name.lower()
                assert a.active_ingredient.lower() == entry.active_ingredient.lower()

    def test_without_reference_price_keeps_catalog_order(self, catalog):
        alts = find_alternatives(catalog, "paracetamol", "adol", None)
        assert [a.trade_name for a in alts] == ["Panadol", "Panadol Advance", "Abimol"]

    def test_no_candidates(self, catalog):
        assert find_alternatives(catalog, "Warfarin", "Marevan", 35) == []
        assert find_alternatives(catalog, "", "Marevan", 35) == []

    def test_capped_at_six(self, catalog):
        from smartpharmacy.schemas import CatalogEntry
        from smartpharmacy.services.catalog import Catalog

        many = Catalog(
            CatalogEntry(id=str(i), trade_name=f"Brand {i}", active_ingredient="Cetirizine", avg_price=float(i))
            for i in range(10)
        )
        alts = find_alternatives(many, "cetirizine", "Brand 0", 0)
        assert [a.trade_name for a in alts] == [f"Brand {i}" for i in range(1, 7)]

    def test_idempotent(self, catalog):
        assert find_alternatives(catalog, "Paracetamol", "Panadol", 15) == \
            find_alternatives(catalog, "Paracetamol", "Panadol", 15)
