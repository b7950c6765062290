from dbsession.session.flash import FlashBag


def test_flash_survives_one_boundary_and_is_gone_after_the_second():
    """Test a flash variable lives for exactly one extra request."""
    variables = {}
    bag = FlashBag(variables)

    bag.set("status", "Saved!")
    assert variables["status"] == "Saved!"

    bag.on_request_boundary()
    assert variables["status"] == "Saved!"
    assert bag.has("status")

    bag.on_request_boundary()
    assert "status" not in variables
    assert not bag.has("status")
    assert len(bag) == 0


def test_plain_variables_are_untouched():
    variables = {"user_id": 7}
    bag = FlashBag(variables)

    bag.set("status", "ok")
    bag.on_request_boundary()
    bag.on_request_boundary()

    assert variables == {"user_id": 7}


def test_setting_again_restarts_the_counter():
    variables = {}
    bag = FlashBag(variables)

    bag.set("status", "first")
    bag.on_request_boundary()
    bag.set("status", "second")
    bag.on_request_boundary()

    assert variables["status"] == "second"


def test_now_is_removed_at_the_first_boundary():
    variables = {}
    bag = FlashBag(variables)

    bag.now("notice", "only this request")
    assert variables["notice"] == "only this request"

    bag.on_request_boundary()
    assert "notice" not in variables


def test_keep_resets_selected_counters():
    """Test keep() gives selected variables one more request."""
    variables = {}
    bag = FlashBag(variables)
    bag.set("a", 1)
    bag.set("b", 2)
    bag.on_request_boundary()

    bag.keep(["a", "unknown"])
    bag.on_request_boundary()

    assert variables == {"a": 1}


def test_reflash_keeps_everything():
    variables = {}
    bag = FlashBag(variables)
    bag.set("a", 1)
    bag.set("b", 2)
    bag.on_request_boundary()

    bag.reflash()
    bag.on_request_boundary()

    assert variables == {"a": 1, "b": 2}


def test_counters_travel_through_dump_and_load():
    """Test counters restored on the next request continue where they stopped."""
    first_request = {}
    bag = FlashBag(first_request)
    bag.set("status", "ok")
    bag.on_request_boundary()
    counters = bag.dump()

    assert counters == {"status": 1}

    second_request = dict(first_request)
    next_bag = FlashBag()
    next_bag.bind(second_request)
    next_bag.load(counters)
    next_bag.on_request_boundary()

    assert second_request == {}


def test_clear_stops_tracking_but_keeps_values():
    variables = {}
    bag = FlashBag(variables)
    bag.set("status", "ok")

    bag.clear()
    bag.on_request_boundary()
    bag.on_request_boundary()

    assert variables == {"status": "ok"}
