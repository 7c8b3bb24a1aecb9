import pytest

from backend.core.normalize import (
    EMPTY_QUERY,
    expand_muscle_group,
    normalize,
    normalize_tag,
    singularize,
    slugify,
)


@pytest.mark.unit
class TestNormalize:
    """Tests for the normalize function."""

    def test_case_and_whitespace(self):
        """Names differing only by case and whitespace normalize identically."""
        assert normalize("  Barbell   BACK squat ").text == "barbell back squat"
        assert normalize("barbell back squat") == normalize("BARBELL BACK SQUAT")

    def test_simple_plurals(self):
        """Simple plurals reduce to the singular form."""
        assert normalize("Lunges").text == "lunge"
        assert normalize("Jumping Jacks").text == "jumping jack"
        assert normalize("Bench Presses").text == "bench press"
        assert normalize("Standing Calf Raises").text == "standing calf raise"
        assert normalize("Calves").text == "calf"

    def test_protected_words_keep_their_s(self):
        """Test words ending in s that are not plurals are kept."""
        assert normalize("Biceps Curl").text == "biceps curl"
        assert normalize("Abs Crunch").text == "abs crunch"
        assert normalize("Press").text == "press"

    def test_expand_abbreviations(self):
        """Common gym abbreviations are expanded."""
        assert normalize("DB Row").text == "dumbbell row"
        assert normalize("bb squat").text == "barbell squat"
        assert normalize("KB Swing").text == "kettlebell swing"
        assert normalize("RDL").text == "romanian deadlift"

    def test_compound_word_spellings(self):
        """pushups / push-ups / push ups resolve to comparable keys."""
        assert normalize("Pushups").text == "push-up"
        assert normalize("Push-Ups").text == "push-up"
        assert normalize("push ups").text == "push up"
        assert normalize("Push-Ups").compact == normalize("push ups").text

    def test_strip_bracketed_qualifiers(self):
        """Test bracketed qualifiers are dropped."""
        assert normalize("Squat (Dumbbell)").text == "squat"
        assert normalize("Plank [hold 30s]").text == "plank"

    def test_strip_trailing_dash_qualifiers(self):
        """Test trailing qualifier suffixes after a dash are dropped."""
        assert normalize("Glute Bridge - Beginner").text == "glute bridge"
        assert normalize("Lunge - each side").text == "lunge"

    def test_meaningful_dash_suffix_is_kept(self):
        """A suffix that is not only qualifier words stays part of the name."""
        assert "sumo" in normalize("Deadlift - Sumo").tokens

    def test_punctuation_and_apostrophes(self):
        """Test punctuation and possessives are removed."""
        assert normalize("Farmer's Carry!").text == "farmer carry"
        assert normalize("Bench press, flat.").text == "bench press flat"

    def test_stopwords_removed(self):
        """Test stopwords are removed."""
        assert normalize("Row with the Dumbbell").text == "row dumbbell"

    def test_separators(self):
        """Test underscores and slashes separate words."""
        assert normalize("push_up").text == normalize("push/up").text == "push up"

    def test_tokens_match_text(self):
        """Test tokens and text agree."""
        query = normalize("Walking Lunges")
        assert query.tokens == ("walking", "lunge")
        assert str(query) == "walking lunge"


@pytest.mark.unit
class TestMalformedInput:
    """Non-string or empty input yields the empty query instead of raising."""

    @pytest.mark.parametrize("raw", [None, "", "   ", 42, ["squat"], "!!!", "(only brackets)", "the"])
    def test_malformed_input_is_empty(self, raw):
        """Test each malformed input gives the empty query."""
        query = normalize(raw)
        assert query == EMPTY_QUERY
        assert query.is_empty

    def test_idempotent(self):
        """Test normalizing a normalized name changes nothing."""
        for raw in ["Push-Ups", "DB Bench Presses", "Farmer's Walk - Beginner"]:
            once = normalize(raw)
            assert normalize(once.text) == once


@pytest.mark.unit
class TestSingularize:
    """Tests for singularize."""

    def test_rules(self):
        """Test the plural suffix rules."""
        assert singularize("rows") == "row"
        assert singularize("flies") == "fly"
        assert singularize("boxes") == "box"
        assert singularize("crunches") == "crunch"
        assert singularize("press") == "press"
        assert singularize("step-ups") == "step-up"


@pytest.mark.unit
class TestTags:
    """Tests for tag helpers."""

    def test_normalize_tag(self):
        """Test tags become lowercase snake case."""
        assert normalize_tag("Lower Back") == "lower_back"
        assert normalize_tag(" Full-Body ") == "full_body"
        assert normalize_tag(None) == ""

    def test_expand_muscle_group_region(self):
        """Test a body region expands to its muscles."""
        tags = expand_muscle_group("Legs")
        assert "legs" in tags
        assert {"quadriceps", "glutes", "hamstrings"} <= tags

    def test_expand_unknown_tag_is_itself(self):
        """Test an unknown tag expands to itself only."""
        assert expand_muscle_group("forearms") == frozenset({"forearms"})
        assert expand_muscle_group("") == frozenset()

    def test_slugify(self):
        """Test display names become id slugs."""
        assert slugify("Push-Up (Wide)") == "push-up-wide"
        assert slugify("Farmer's Carry") == "farmer-s-carry"
