import pytest

from paintmix.ai.errors import StructureError
from paintmix.services.recipe_validation import validate_recipe


def make_recipe(**overrides):
    recipe = {
        "targetBrand": "Vallejo",
        "targetName": "Grey",
        "confidence": 0.85,
        "explanation": "50/50",
        "components": [
            {"paintId": "p1", "drops": 5},
            {"paintId": "p2", "drops": 5},
        ],
    }
    recipe.update(overrides)
    return recipe


def test_two_components_pass():
    validate_recipe(make_recipe())


def test_not_an_object():
    with pytest.raises(StructureError, match="Invalid recipe structure"):
        validate_recipe(None)
    with pytest.raises(StructureError, match="Invalid recipe structure"):
        validate_recipe([{"paintId": "p1", "drops": 1}])


@pytest.mark.parametrize("field", ["targetBrand", "targetName"])
def test_missing_target(field):
    with pytest.raises(StructureError, match="Missing target brand or name"):
        validate_recipe(make_recipe(**{field: ""}))


def test_single_component_fails():
    with pytest.raises(StructureError, match="at least 2 components"):
        validate_recipe(make_recipe(components=[{"paintId": "p1", "drops": 5}]))


def test_components_must_be_a_list():
    with pytest.raises(StructureError, match="at least 2 components"):
        validate_recipe(make_recipe(components={"p1": 5, "p2": 5}))


def test_component_missing_paint_id():
    with pytest.raises(StructureError, match="Component missing paintId"):
        validate_recipe(make_recipe(components=[{"paintId": "p1", "drops": 5}, {"drops": 5}]))


def test_missing_paint_id_is_reported_before_bad_drops():
    components = [{"paintId": "p1", "drops": 0}, {"paintId": "", "drops": 5}]
    with pytest.raises(StructureError, match="Component missing paintId"):
        validate_recipe(make_recipe(components=components))


@pytest.mark.parametrize("drops", [0, -1, 2.5, "3", None, True])
def test_drops_must_be_positive_integers(drops):
    components = [{"paintId": "p1", "drops": 5}, {"paintId": "p2", "drops": drops}]
    with pytest.raises(StructureError, match="Drops must be positive integers"):
        validate_recipe(make_recipe(components=components))


@pytest.mark.parametrize("confidence", [0, 0.5, 1.0])
def test_confidence_in_range_passes(confidence):
    validate_recipe(make_recipe(confidence=confidence))


@pytest.mark.parametrize("confidence", [1.01, -0.1, "high", None])
def test_confidence_out_of_range_fails(confidence):
    with pytest.raises(StructureError, match="Confidence must be between 0 and 1"):
        validate_recipe(make_recipe(confidence=confidence))


def test_confidence_is_optional():
    recipe = make_recipe()
    del recipe["confidence"]
    validate_recipe(recipe)
