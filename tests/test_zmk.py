import pytest

from firmware_layout.config import ParseConfig
from firmware_layout.model import FirmwareDescriptor
from firmware_layout.parse import ZmkKeymapParser
from firmware_layout.parse.dts import DeviceTree

KEYMAP_TEMPLATE = """
#include <behaviors.dtsi>
#include <dt-bindings/zmk/keys.h>

/ {{
    keymap {{
        compatible = "zmk,keymap";

        default_layer {{
            // base layer
            bindings = <
                {base}
            >;
        }};

        lower_layer {{
            bindings = <&trans &kp N1>;
            sensor-bindings = <&inc_dec_kp C_VOL_UP C_VOL_DN>;
        }};
    }};
}};
"""


@pytest.fixture(name="parser", params=[True, False], ids=["preprocess", "no_preprocess"])
def fixture_parser(request) -> ZmkKeymapParser:
    return ZmkKeymapParser(ParseConfig(preprocess=request.param))


def parse_keymap(parser: ZmkKeymapParser, content: str, file_name: str = "board.keymap"):
    return parser.parse(FirmwareDescriptor(file_name=file_name, content=content))


def test_layers_and_name(parser: ZmkKeymapParser) -> None:
    model = parse_keymap(parser, KEYMAP_TEMPLATE.format(base="&kp Q &kp W &mo 1"))

    assert model.type == "ZMK"
    assert model.name == "behaviors"
    assert [layer.name for layer in model.layers] == ["default_layer", "lower_layer"]
    assert model.layers[0].keycodes == ("&kp", "Q", "&kp", "W", "&mo", "1")
    assert model.layers[1].keycodes == ("&trans", "&kp", "N1")


def test_flat_grid_for_small_keymap(parser: ZmkKeymapParser) -> None:
    model = parse_keymap(parser, KEYMAP_TEMPLATE.format(base=" ".join(["&trans"] * 12)))

    assert not model.is_split
    assert len(model.keys) == 12
    assert all(k.half is None for k in model.keys)
    assert model.layout is None


@pytest.mark.parametrize("token_count", [30, 48, 50])
def test_split_grid_for_split_key_counts(parser: ZmkKeymapParser, token_count: int) -> None:
    model = parse_keymap(parser, KEYMAP_TEMPLATE.format(base=" ".join(["&trans"] * token_count)))

    assert model.is_split
    assert len(model.keys) == 42
    assert len(model.layers[0].keycodes) == token_count


def test_flat_grid_above_split_range(parser: ZmkKeymapParser) -> None:
    model = parse_keymap(parser, KEYMAP_TEMPLATE.format(base=" ".join(["&trans"] * 51)))

    assert not model.is_split
    assert len(model.keys) == 51


@pytest.mark.parametrize(
    "comment",
    [
        "// left half",
        "// right half",
        "// |   |",
        "// |Q|W|E|R|T|Y|U|I|O|",
    ],
)
def test_split_cues(parser: ZmkKeymapParser, comment: str) -> None:
    base = comment + "\n" + " ".join(["&trans"] * 12)
    model = parse_keymap(parser, KEYMAP_TEMPLATE.format(base=base))

    assert model.is_split
    assert all(k.half is not None for k in model.keys)
    assert len(model.layers[0].keycodes) == 12


def test_name_without_include(parser: ZmkKeymapParser) -> None:
    content = KEYMAP_TEMPLATE.format(base="&kp A").replace("#include <behaviors.dtsi>\n", "")
    content = content.replace("#include <dt-bindings/zmk/keys.h>\n", "")

    assert parse_keymap(parser, content, "sweep.keymap").name == "sweep.keymap"


def test_no_layers(parser: ZmkKeymapParser) -> None:
    model = parse_keymap(parser, "/ { chosen { }; };")

    assert not model.layers
    assert not model.keys
    assert not model.is_split


def test_garbage_input(parser: ZmkKeymapParser) -> None:
    model = parse_keymap(parser, "this is not a keymap at all")
    assert not model.layers and not model.keys


def test_unclosed_nodes() -> None:
    content = """
    / {
        keymap {
            compatible = "zmk,keymap";
            base {
                bindings = <&kp A &kp B>;
    """
    model = ZmkKeymapParser(ParseConfig(preprocess=False)).parse(
        FirmwareDescriptor(file_name="cut.keymap", content=content)
    )

    assert [layer.name for layer in model.layers] == ["base"]
    assert model.layers[0].keycodes == ("&kp", "A", "&kp", "B")


def test_keymap_found_by_compatible() -> None:
    content = """
    / {
        my_keymap {
            compatible = "zmk,keymap";
            only { bindings = <&kp X>; };
        };
    };
    """
    model = ZmkKeymapParser(ParseConfig(preprocess=False)).parse(
        FirmwareDescriptor(file_name="x.keymap", content=content)
    )
    assert [layer.name for layer in model.layers] == ["only"]


def test_device_tree_nodes() -> None:
    dts = DeviceTree(
        """
        / {
            behaviors {
                hm: homerow_mods {
                    compatible = "zmk,behavior-hold-tap";
                    tapping-term-ms = <200>;
                };
            };
        };
        """,
        "test.keymap",
        preprocess=False,
    )

    (node,) = dts.get_compatible_nodes("zmk,behavior-hold-tap")
    assert (node.label, node.name) == ("hm", "homerow_mods")
    assert node.get_array("tapping-term-ms") == ["200"]
    assert node.get_string("compatible") == "zmk,behavior-hold-tap"
    assert [n.name for n in dts.get_named_nodes("behaviors")] == ["behaviors"]
