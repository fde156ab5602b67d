from tripletviz.core.colors import EdgeColorRegistry, marker_id


def test_marker_created_once_per_color():
    created = []
    reg = EdgeColorRegistry(
        lambda p: "red" if p["type"] == "hates" else "black",
        on_new_color=lambda color, marker: created.append((color, marker)),
    )
    assert reg.ensure({"type": "likes"}) == "black"
    assert reg.ensure({"type": "hates"}) == "red"
    assert reg.ensure({"type": "knows"}) == "black"
    assert created == [("black", "arrow-black"), ("red", "arrow-red")]
    assert reg.colors == ["black", "red"]
    assert "red" in reg


def test_constant_color():
    reg = EdgeColorRegistry("blue")
    assert reg.resolve({"type": "x"}) == "blue"
    assert marker_id("blue") == "arrow-blue"
