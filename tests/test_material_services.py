"""
Tests for the material requirement resolver and dosage rule management.
"""
import pytest
from pydantic import ValidationError

from constants.general_constants import CropCategory
from schemas.material_schemas import MaterialRuleCreate
from services.material_services import (
    add_material_rule,
    available_alternatives,
    resolve_materials,
    to_material_entries,
)
from utils.errors import ValidationFailed


# ============================================================
# Resolving
# ============================================================

class TestResolveMaterials:

    def test_required_rule_auto_selected_and_scaled(self, store, master_data, activities):
        lines = resolve_materials(
            store, activities["WEED_CONTROL"], "PC", stage_id=master_data["stage"]["PRE_EMERGENCE"], total_area=8.0,
        )

        assert [line.rule_id for line in lines] == [master_data["rule_gly"], master_data["rule_amt_a"]]
        gly = lines[0]
        assert gly.selected is True
        assert gly.quantity == 4.0
        assert gly.material_code == "GLY"
        assert lines[1].selected is False

    def test_quantity_is_dosage_times_area(self, store, activities):
        lines = resolve_materials(store, activities["WEED_CONTROL"], None, total_area=3.7)

        assert lines
        for line in lines:
            assert line.quantity == line.dosage_per_ha * 3.7

    def test_resolving_is_pure(self, store, activities):
        first = resolve_materials(store, activities["WEED_CONTROL"], CropCategory.PLANT_CANE, total_area=2.5)
        second = resolve_materials(store, activities["WEED_CONTROL"], CropCategory.PLANT_CANE, total_area=2.5)

        assert first == second
        assert store.writes == []

    def test_crop_category_filters_specific_rules(self, store, master_data, activities):
        lines = resolve_materials(store, activities["WEED_CONTROL"], "RC", total_area=1.0)

        assert {line.rule_id for line in lines} == {master_data["rule_gly"], master_data["rule_amt_b"]}

    def test_alternative_keeps_rules_without_alternative(self, store, master_data, activities):
        lines = resolve_materials(store, activities["WEED_CONTROL"], "PC", alternative="Plan A", total_area=1.0)

        assert {line.rule_id for line in lines} == {master_data["rule_gly"], master_data["rule_amt_a"]}

    def test_stage_filter(self, store, master_data, activities):
        lines = resolve_materials(
            store, activities["WEED_CONTROL"], None, stage_id=master_data["stage"]["POST_EMERGENCE"], total_area=1.0,
        )

        assert [line.rule_id for line in lines] == [master_data["rule_amt_b"]]

    def test_no_rules_is_empty(self, store, activities):
        assert resolve_materials(store, activities["PANEN"], "PC", total_area=5.0) == []

    @pytest.mark.parametrize("activity_type_id", [None, 0])
    def test_missing_activity(self, store, activity_type_id):
        with pytest.raises(ValidationFailed):
            resolve_materials(store, activity_type_id, "PC")

    def test_available_alternatives(self, store, activities):
        lines = resolve_materials(store, activities["WEED_CONTROL"], None, total_area=1.0)
        assert available_alternatives(lines) == ["Plan A", "Plan B"]

    def test_dosage_override_recomputes_quantity(self, store, master_data, activities):
        line = resolve_materials(
            store, activities["WEED_CONTROL"], "PC", stage_id=master_data["stage"]["PRE_EMERGENCE"], total_area=8.0,
        )[0]

        changed = line.with_dosage(0.75, 8.0)

        assert changed.quantity == 6.0
        assert changed.rule_id == line.rule_id
        assert line.dosage_per_ha == 0.5

    def test_entries_only_for_selected_lines(self, store, master_data, activities):
        lines = resolve_materials(
            store, activities["WEED_CONTROL"], "PC", stage_id=master_data["stage"]["PRE_EMERGENCE"], total_area=8.0,
        )

        entries = to_material_entries(lines)

        assert [(e.material_id, e.dosage_per_ha, e.unit) for e in entries] == [(master_data["glyphosate"], 0.5, "liter")]


# ============================================================
# Rule Management
# ============================================================

class TestAddMaterialRule:

    def test_duplicate_with_null_selectors_rejected(self, store, master_data, activities):
        data = MaterialRuleCreate(
            activity_type_id=activities["WEED_CONTROL"],
            material_id=master_data["glyphosate"],
            stage_id=master_data["stage"]["PRE_EMERGENCE"],
            default_dosage=1.0,
            unit="liter",
        )
        with pytest.raises(ValidationFailed, match="already exists"):
            add_material_rule(store, data)

    def test_same_material_for_other_category_allowed(self, store, master_data, activities):
        data = MaterialRuleCreate(
            activity_type_id=activities["WEED_CONTROL"],
            material_id=master_data["glyphosate"],
            stage_id=master_data["stage"]["PRE_EMERGENCE"],
            crop_category="RC",
            default_dosage=1.0,
            unit="liter",
        )
        row = add_material_rule(store, data)

        assert row["crop_category"] == "RC"
        assert row["alternative_option"] is None

    def test_blank_alternative_stored_as_null(self, store, master_data, activities):
        data = MaterialRuleCreate(
            activity_type_id=activities["PUPUK"],
            material_id=master_data["ametryn"],
            alternative_option="  ",
            default_dosage=1.0,
            unit="liter",
        )
        assert add_material_rule(store, data)["alternative_option"] is None

    def test_unknown_material(self, store, activities):
        data = MaterialRuleCreate(activity_type_id=activities["PUPUK"], material_id=999, default_dosage=1.0, unit="kg")
        with pytest.raises(ValidationFailed):
            add_material_rule(store, data)

    def test_dosage_must_be_positive(self, activities, master_data):
        with pytest.raises(ValidationError):
            MaterialRuleCreate(
                activity_type_id=activities["PUPUK"], material_id=master_data["urea"], default_dosage=0, unit="kg",
            )
