import pytest

from dynamic_params import replace_dynamic_params
from matrix_engine import (
    build_final_url,
    build_matrix_preview,
    calculate_matrix_stats,
    exceeds_soft_limit,
    generate_ad_sets_from_matrix,
    stats_for,
)
from models import (
    BroadAudience,
    BulkAudiencesConfig,
    BulkCreativesConfig,
    CampaignConfig,
    CopyBlock,
    CopyVariant,
    Creative,
    CreativeVersion,
    GeoLocations,
    InterestAudience,
    MatrixDimensions,
    MatrixStats,
)


def _creative(name, fmt="Image", feed=True, story=False, **kwargs):
    ext = "mp4" if fmt == "Video" else "jpg"
    return Creative(
        name=name,
        format=fmt,
        feed_version=CreativeVersion(url=f"https://cdn.example.com/{name}-feed.{ext}") if feed else None,
        story_version=CreativeVersion(url=f"https://cdn.example.com/{name}-story.{ext}") if story else None,
        **kwargs,
    )


def _total_ads(ad_sets):
    return sum(len(s.ads) for s in ad_sets)


@pytest.fixture
def campaign():
    return CampaignConfig(
        name="Spring Sale",
        type="Traffic",
        objective="OUTCOME_TRAFFIC",
        redirection_type="LANDING_PAGE",
        redirection_url="https://shop.example.com/spring",
        url_params_override="utm_source=facebook&utm_medium=paid",
        budget=100,
        start_date="2025-03-01",
    )


@pytest.fixture
def audiences():
    return BulkAudiencesConfig(
        audiences=[
            BroadAudience(name="A"),
            InterestAudience(name="B", interests=["Fashion"]),
        ],
        placement_presets=["FEEDS_REELS"],
        geo_locations=GeoLocations(countries=["FR"]),
    )


@pytest.fixture
def creatives():
    return BulkCreativesConfig(
        creatives=[_creative("C1")],
        copy_mode="GLOBAL",
        global_headline="Spring deals",
        global_primary_text="Up to 50% off",
    )


# --- Worked examples ---

def test_one_ad_set_per_audience(campaign, audiences, creatives):
    dims = MatrixDimensions(creatives=False, copy_variants=False, format_split=False)
    ad_sets = generate_ad_sets_from_matrix(campaign, audiences, creatives, dims)

    assert [s.name for s in ad_sets] == ["A - FEEDS_REELS", "B - FEEDS_REELS"]
    assert all(len(s.ads) == 1 for s in ad_sets)
    assert ad_sets[0].placements == ["Feed", "Reels"]

    stats = stats_for(audiences, creatives, dims)
    assert stats == MatrixStats(ad_sets=2, ads_per_ad_set=1, total_ads=2)


def test_creatives_dimension_splits_ad_sets(campaign, audiences):
    creatives = BulkCreativesConfig(creatives=[_creative("C1"), _creative("C2")])
    dims = MatrixDimensions(creatives=True)

    ad_sets = generate_ad_sets_from_matrix(campaign, audiences, creatives, dims)

    assert len(ad_sets) == 4
    assert all(len(s.ads) == 1 for s in ad_sets)
    assert _total_ads(ad_sets) == 4
    assert stats_for(audiences, creatives, dims).total_ads == 4


def test_copy_variants_multiply_ads(campaign):
    audiences = BulkAudiencesConfig(audiences=[BroadAudience(name="A")], placement_presets=["FEEDS_REELS"])
    creatives = BulkCreativesConfig(
        creatives=[_creative("C1")],
        copy_mode="VARIANT_MATRIX",
        copy_variants=[
            CopyVariant(id="va", name="VP-A", headline="Save today", primary_text="Deal A", cta="Shop Now"),
            CopyVariant(id="vb", name="VP-B", headline="Last chance", primary_text="Deal B", cta="Learn More"),
        ],
    )
    dims = MatrixDimensions(copy_variants=True)

    ad_sets = generate_ad_sets_from_matrix(campaign, audiences, creatives, dims)

    assert len(ad_sets) == 1
    ads = ad_sets[0].ads
    assert [a.headline for a in ads] == ["Save today", "Last chance"]
    assert [a.copy_variant_id for a in ads] == ["va", "vb"]
    assert ads[0].name == "C1 - Save today"
    assert stats_for(audiences, creatives, dims) == MatrixStats(ad_sets=1, ads_per_ad_set=2, total_ads=2)


def test_copy_variants_ignored_when_dimension_off(campaign):
    audiences = BulkAudiencesConfig(audiences=[BroadAudience(name="A")])
    creatives = BulkCreativesConfig(
        creatives=[_creative("C1")],
        copy_mode="VARIANT_MATRIX",
        copy_variants=[CopyVariant(name="VP-A", headline="H", primary_text="P", cta="Shop Now")],
    )

    ad_sets = generate_ad_sets_from_matrix(campaign, audiences, creatives, MatrixDimensions(copy_variants=False))

    assert len(ad_sets[0].ads) == 1
    assert ad_sets[0].ads[0].copy_variant_id is None


# --- Preconditions and pruning ---

@pytest.mark.parametrize("field", ["audiences", "placement_presets"])
def test_missing_audience_side_yields_nothing(campaign, audiences, creatives, field):
    emptied = audiences.model_copy(update={field: []})
    assert generate_ad_sets_from_matrix(campaign, emptied, creatives, MatrixDimensions()) == []


def test_no_creatives_yields_nothing(campaign, audiences):
    assert generate_ad_sets_from_matrix(
        campaign, audiences, BulkCreativesConfig(creatives=[]), MatrixDimensions()
    ) == []


def test_creative_without_media_is_skipped(campaign, audiences):
    creatives = BulkCreativesConfig(creatives=[_creative("C1"), _creative("Empty", feed=False)])
    dims = MatrixDimensions(creatives=True)

    ad_sets = generate_ad_sets_from_matrix(campaign, audiences, creatives, dims)

    assert len(ad_sets) == 2
    assert all(s.ads[0].name.startswith("C1") for s in ad_sets)
    # The estimate does not model pruning
    assert stats_for(audiences, creatives, dims).ad_sets == 4


def test_story_only_creative_is_used(campaign, audiences):
    creatives = BulkCreativesConfig(creatives=[_creative("S", feed=False, story=True)])

    ads = generate_ad_sets_from_matrix(campaign, audiences, creatives, MatrixDimensions())[0].ads

    assert ads[0].creative_url == "https://cdn.example.com/S-story.jpg"
    assert ads[0].creative_url_story == "https://cdn.example.com/S-story.jpg"


def test_no_empty_ad_sets(campaign, audiences):
    creatives = BulkCreativesConfig(creatives=[
        _creative("Img"),
        _creative("Vid", fmt="Video"),
        _creative("Empty", feed=False),
    ])
    for dims in (
        MatrixDimensions(format_split=True),
        MatrixDimensions(creatives=True),
        MatrixDimensions(format_split=True, creatives=True),
    ):
        ad_sets = generate_ad_sets_from_matrix(campaign, audiences, creatives, dims)
        assert ad_sets
        assert all(len(s.ads) > 0 for s in ad_sets)


# --- Format split ---

def test_format_split_keeps_formats_apart(campaign, audiences):
    creatives = BulkCreativesConfig(creatives=[
        _creative("Img1"),
        _creative("Vid1", fmt="Video"),
        _creative("Img2"),
    ])

    ad_sets = generate_ad_sets_from_matrix(campaign, audiences, creatives, MatrixDimensions(format_split=True))

    assert [s.name for s in ad_sets] == [
        "A - FEEDS_REELS - Image",
        "A - FEEDS_REELS - Video",
        "B - FEEDS_REELS - Image",
        "B - FEEDS_REELS - Video",
    ]
    for ad_set in ad_sets:
        assert {ad.format for ad in ad_set.ads} == {ad_set.format}
    assert [len(s.ads) for s in ad_sets] == [2, 1, 2, 1]


def test_format_split_drops_missing_format(campaign, audiences, creatives):
    ad_sets = generate_ad_sets_from_matrix(campaign, audiences, creatives, MatrixDimensions(format_split=True))

    assert [s.format for s in ad_sets] == ["Image", "Image"]
    assert stats_for(audiences, creatives, MatrixDimensions(format_split=True)).ad_sets == 4


# --- Copy resolution ---

def test_creative_copy_overrides_variants(campaign, audiences):
    creative = _creative("Hero", headline="Hero for {{audience}}", cta="Shop Now")
    creatives = BulkCreativesConfig(
        creatives=[creative],
        copy_mode="VARIANT_MATRIX",
        copy_variants=[CopyVariant(name="VP-A", headline="Variant", primary_text="P", cta="Learn More")],
    )

    ad_sets = generate_ad_sets_from_matrix(campaign, audiences, creatives, MatrixDimensions(copy_variants=True))

    for ad_set in ad_sets:
        assert len(ad_set.ads) == 1
        ad = ad_set.ads[0]
        expected = replace_dynamic_params(creative.headline, {"audience": ad_set.audience.name})
        assert ad.headline == expected
        assert ad.primary_text == ""
        assert ad.cta == "Shop Now"
        assert ad.copy_variant_id is None


def test_global_copy_gets_dynamic_params(campaign, audiences):
    creatives = BulkCreativesConfig(
        creatives=[_creative("C1", label="UGC")],
        copy_mode="GLOBAL",
        global_headline="{{label}} for {{audience}} in {{country}}",
        global_primary_text="Seen on {{placement}}, {{city}}",
        global_cta="",
    )

    ad = generate_ad_sets_from_matrix(campaign, audiences, creatives, MatrixDimensions())[0].ads[0]

    assert ad.headline == "UGC for A in FR"
    assert ad.primary_text == "Seen on Feeds + Reels, {{city}}"
    assert ad.cta == "Learn More"
    assert ad.name == "C1 - UGC for A in FR"


def test_per_creative_copy(campaign, audiences):
    first, second = _creative("C1"), _creative("C2")
    creatives = BulkCreativesConfig(
        creatives=[first, second],
        copy_mode="PER_CREATIVE",
        creative_copies={first.id: CopyBlock(headline="First", primary_text="One", cta="")},
    )

    ads = generate_ad_sets_from_matrix(campaign, audiences, creatives, MatrixDimensions())[0].ads

    assert (ads[0].headline, ads[0].primary_text, ads[0].cta) == ("First", "One", "Learn More")
    assert (ads[1].headline, ads[1].primary_text, ads[1].cta) == ("", "", "Learn More")


# --- Destination, budget, identity ---

def test_ads_carry_destination_and_final_url(campaign, audiences, creatives):
    ad = generate_ad_sets_from_matrix(campaign, audiences, creatives, MatrixDimensions())[0].ads[0]

    assert ad.destination.type == "LANDING_PAGE"
    assert ad.destination.url == "https://shop.example.com/spring"
    assert ad.destination.form_id is None
    assert ad.final_url_with_params == "https://shop.example.com/spring?utm_source=facebook&utm_medium=paid"


def test_lead_form_destination(audiences, creatives):
    campaign = CampaignConfig(
        name="Leads", type="Leads", redirection_type="LEAD_FORM", redirection_form_id="form_42",
        url_params_override="utm_source=facebook",
    )

    ad = generate_ad_sets_from_matrix(campaign, audiences, creatives, MatrixDimensions())[0].ads[0]

    assert ad.destination.form_id == "form_42"
    assert ad.destination.url is None
    assert ad.final_url_with_params == ""


def test_build_final_url_variants(campaign):
    assert build_final_url(campaign.model_copy(update={"url_params_override": None})) == (
        "https://shop.example.com/spring"
    )
    with_query = campaign.model_copy(update={
        "redirection_url": "https://shop.example.com/spring?ref=ig",
        "url_params_override": "?utm_source=facebook",
    })
    assert build_final_url(with_query) == "https://shop.example.com/spring?ref=ig&utm_source=facebook"


def test_budget_only_on_abo(campaign, audiences, creatives):
    audiences = audiences.model_copy(update={"budget_per_ad_set": 50, "budget_type": "daily"})

    cbo = generate_ad_sets_from_matrix(campaign, audiences, creatives, MatrixDimensions())
    abo = generate_ad_sets_from_matrix(
        campaign.model_copy(update={"budget_mode": "ABO"}), audiences, creatives, MatrixDimensions()
    )

    assert cbo[0].budget is None and cbo[0].budget_type is None
    assert abo[0].budget == 50 and abo[0].budget_type == "daily"


def test_ids_are_unique_and_linked(campaign, audiences):
    creatives = BulkCreativesConfig(creatives=[_creative("C1"), _creative("C2", fmt="Video")])

    ad_sets = generate_ad_sets_from_matrix(campaign, audiences, creatives, MatrixDimensions(format_split=True))

    ad_ids = [ad.id for s in ad_sets for ad in s.ads]
    assert len(set(ad_ids)) == len(ad_ids)
    assert len({s.id for s in ad_sets}) == len(ad_sets)
    for ad_set in ad_sets:
        assert all(ad.ad_set_id == ad_set.id for ad in ad_set.ads)


def test_custom_placement_preset(campaign, creatives):
    audiences = BulkAudiencesConfig(
        audiences=[BroadAudience(name="A")],
        placement_presets=["CUSTOM"],
        custom_placements=["Instagram Explore"],
    )

    ad_sets = generate_ad_sets_from_matrix(campaign, audiences, creatives, MatrixDimensions())

    assert ad_sets[0].placements == ["Instagram Explore"]


def test_inputs_are_not_mutated(campaign, audiences, creatives):
    before = (campaign.model_dump(), audiences.model_dump(), creatives.model_dump())
    generate_ad_sets_from_matrix(campaign, audiences, creatives, MatrixDimensions(format_split=True))
    assert (campaign.model_dump(), audiences.model_dump(), creatives.model_dump()) == before


# --- Stats ---

@pytest.mark.parametrize("dims", [
    MatrixDimensions(),
    MatrixDimensions(creatives=True),
    MatrixDimensions(copy_variants=True),
    MatrixDimensions(creatives=True, copy_variants=True),
])
def test_stats_match_generation(campaign, dims):
    audiences = BulkAudiencesConfig(
        audiences=[BroadAudience(name="A"), BroadAudience(name="B"), BroadAudience(name="C")],
        placement_presets=["FEEDS_REELS", "STORIES_ONLY"],
    )
    creatives = BulkCreativesConfig(
        creatives=[_creative("C1"), _creative("C2", story=True), _creative("C3", fmt="Video")],
        copy_mode="VARIANT_MATRIX",
        copy_variants=[
            CopyVariant(name="VP-A", headline="A", primary_text="A", cta="Shop Now"),
            CopyVariant(name="VP-B", headline="B", primary_text="B", cta="Shop Now"),
        ],
    )

    ad_sets = generate_ad_sets_from_matrix(campaign, audiences, creatives, dims)
    stats = stats_for(audiences, creatives, dims)

    assert stats.ad_sets == len(ad_sets)
    assert stats.total_ads == _total_ads(ad_sets)


def test_stats_formula():
    dims = MatrixDimensions(format_split=True, creatives=True, copy_variants=True)
    stats = calculate_matrix_stats(["a", "b"], ["p"], ["c1", "c2", "c3"], True, ["v1", "v2"], dims)
    assert stats == MatrixStats(ad_sets=12, ads_per_ad_set=2, total_ads=24)


def test_stats_variants_need_enable_flag():
    dims = MatrixDimensions(copy_variants=True)
    assert calculate_matrix_stats(["a"], ["p"], ["c"], False, ["v1", "v2"], dims).ads_per_ad_set == 1

def test_stats_enabled_without_variants_counts_zero():
    dims = MatrixDimensions(copy_variants=True)
    stats = calculate_matrix_stats(["a"], ["p"], ["c"], True, [], dims)
    assert stats == MatrixStats(ad_sets=1, ads_per_ad_set=0, total_ads=0)


def test_stats_empty_axes_count_as_one():
    stats = calculate_matrix_stats([], [], ["c1", "c2"], False, [], MatrixDimensions())
    assert stats == MatrixStats(ad_sets=1, ads_per_ad_set=2, total_ads=2)


def test_soft_limit():
    assert exceeds_soft_limit(MatrixStats(ad_sets=10, ads_per_ad_set=31, total_ads=310), 300)
    assert not exceeds_soft_limit(MatrixStats(ad_sets=10, ads_per_ad_set=30, total_ads=300), 300)


def test_preview_bundle(campaign, audiences, creatives):
    preview = build_matrix_preview(campaign, audiences, creatives, MatrixDimensions(), soft_limit=1)

    assert len(preview.ad_sets) == 2
    assert preview.generated_ads == 2
    assert preview.stats.total_ads == 2
    assert preview.over_limit is True
