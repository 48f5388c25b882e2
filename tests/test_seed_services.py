from scripts.seed_services import CATALOG, build_catalog


def test_catalog_converts_labels_to_pricing_windows():
    services = {s.name: s for s in build_catalog()}

    assert len(services) == len(CATALOG)
    bathroom = services["Bathroom Cleaning"]
    assert [(w.start_time, w.end_time, w.price) for w in bathroom.pricing] == [
        ("09:00", "11:00", 400),
        ("11:00", "13:00", 400),
        ("15:00", "17:00", 500),
    ]
    assert services["Cooking Services"].pricing[-1].end_time == "21:00"
    assert services["Water Tank Cleaning"].base_duration == 180
