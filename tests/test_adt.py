import pytest

from zkit.adt import (
    AdtProps,
    AdtType,
    AlreadyConvertedError,
    InvalidTypeError,
    Node,
)


def parsed(text):
    node = Node()
    consumed = node.parse_number(text)
    return node, consumed


def build_doc():
    root = Node().make_branch(None, False)
    layer1 = root.append_obj("layer1")
    layer2 = layer1.append_obj("layer2")
    layer2.append_int("layer3", 42)

    uniforms = root.append_arr("uniforms")
    first = uniforms.append_obj(None)
    first.append_str("name", "l_pos")
    distort = uniforms.append_obj(None)
    distort.append_str("name", "distort")
    layout = distort.append_arr("layout")
    pos_x = layout.append_obj(None)
    pos_x.append_str("pos", "x")
    pos_x.append_flt("default_value", 0.5)
    pos_y = layout.append_obj(None)
    pos_y.append_str("pos", "y")
    pos_y.append_int("default_value", 7)

    numbers = root.append_arr("numbers")
    for value in (10, 42):
        numbers.append_obj(None).append_int("value", value)

    array = root.append_arr("array")
    for i in range(1, 6):
        array.append_int(None, i)
    return root


def names(node):
    return [child.name for child in node]


# Scientific notation cases


def test_parse_exponent_without_fraction_digits():
    node, _ = parsed("1.e-2")
    assert node.type == AdtType.REAL
    assert node.base == 1
    assert node.exp == -2
    assert node.real == pytest.approx(0.01, rel=1e-6)


def test_parse_exponent_with_fraction():
    node, _ = parsed("42.23e4")
    assert node.base == 42
    assert node.base2 == 23
    assert node.base2_offset == 0
    assert node.exp == 4
    assert node.props == AdtProps.IS_EXP
    assert node.real == pytest.approx(422300.0)


def test_parse_leading_dot():
    node, _ = parsed(".032")
    assert node.base2 == 32
    assert node.base2_offset == 1
    assert node.lead_digit is False
    assert node.props == AdtProps.IS_PARSED_REAL
    assert node.real == pytest.approx(0.032)


def test_parse_negative_with_fraction_zeros():
    node, _ = parsed("-232412.00349792")
    assert node.base == -232412
    assert node.base2 == 349792
    assert node.base2_offset == 2
    assert node.real == pytest.approx(-232412.00349792)


# Other number parsing


def test_parse_integer_returns_consumed_length():
    node, consumed = parsed("123,")
    assert node.type == AdtType.INTEGER
    assert node.integer == 123
    assert consumed == 3


def test_parse_hex_integer():
    node, consumed = parsed("0x1F]")
    assert node.integer == 31
    assert node.props == AdtProps.IS_HEX
    assert consumed == 4
    assert node.format_number() == "0x1f"


def test_parse_negative_zero_integer():
    node, _ = parsed("-0")
    assert node.integer == 0
    assert node.neg_zero is True
    assert node.format_number() == "-0"


def test_parse_negative_zero_real():
    node, _ = parsed("-0.5")
    assert node.neg_zero is True
    assert node.base == 0
    assert node.real == pytest.approx(-0.5)


def test_parse_false_positive_skips_one_char():
    node, consumed = parsed("eggs")
    assert consumed == 1
    assert node.type == AdtType.UNINITIALISED


def test_parse_lone_sign_is_false_positive():
    node, consumed = parsed("-x")
    assert consumed == 1
    assert node.type == AdtType.UNINITIALISED


# Formatting


def test_format_parsed_leading_dot_roundtrip():
    node, _ = parsed(".032")
    assert node.format_number() == ".032"


def test_format_plain_real():
    node = Node().set_flt("x", 1.5)
    assert node.format_number() == "1.500000"


def test_format_integer():
    node = Node().set_int("x", -17)
    assert node.format_number() == "-17"


@pytest.mark.parametrize(
    "props,expected",
    [
        (AdtProps.INFINITY, "Infinity"),
        (AdtProps.INFINITY_NEG, "-Infinity"),
        (AdtProps.NAN, "NaN"),
        (AdtProps.NAN_NEG, "-NaN"),
        (AdtProps.TRUE, "true"),
        (AdtProps.FALSE, "false"),
        (AdtProps.NULL, "null"),
    ],
)
def test_format_special_reals(props, expected):
    node = Node().set_flt("x", 0.0)
    node.props = props
    assert node.format_number() == expected


def test_format_number_rejects_strings():
    node = Node().set_str("x", "abc")
    with pytest.raises(InvalidTypeError):
        node.format_number()


def test_format_string_escapes():
    node = Node().set_str(None, 'a"b\\c')
    assert node.format_string('"\\', "\\") == 'a\\"b\\\\c'


def test_format_string_without_escapes():
    node = Node().set_str(None, "plain")
    assert node.format_string('"', "\\") == "plain"


def test_format_string_rejects_numbers():
    node = Node().set_int(None, 3)
    with pytest.raises(InvalidTypeError):
        node.format_string('"', "\\")


# String to number conversion


def test_str_to_number_converts():
    node = Node().set_str("n", "42")
    node.str_to_number()
    assert node.type == AdtType.INTEGER
    assert node.integer == 42
    assert node.string is None


def test_str_to_number_twice_fails():
    node = Node().set_str("n", "2.5")
    node.str_to_number()
    assert node.real == pytest.approx(2.5)
    with pytest.raises(AlreadyConvertedError):
        node.str_to_number()


def test_str_to_number_on_object_fails():
    node = Node().make_branch("o", False)
    with pytest.raises(InvalidTypeError):
        node.str_to_number()


# Building trees


def test_make_leaf_rejects_branch_types():
    with pytest.raises(ValueError):
        Node().make_leaf("x", AdtType.OBJECT)


def test_make_branch_keeps_parent():
    root = Node().make_branch(None, True)
    child = root.append_int(None, 1)
    child.make_branch("inner", False)
    assert child.parent is root
    assert child.type == AdtType.OBJECT
    assert child.nodes == []
    assert child.integer == 0


def test_build_complex_document():
    doc = Node().set_obj(None)
    doc.append_str("$api", "opengl")
    doc.append_str("name", "Diffuse shader")
    doc.append_int("version", 150)
    doc.append_str("type", "fragment")
    uniforms = doc.append_arr("uniforms")
    o2 = uniforms.append_obj(None)
    o2.append_str("name", "l_pos")
    o2.append_str("type", "vec3")
    o2 = uniforms.append_obj(None)
    o2.append_str("name", "l_mat")
    o2.append_str("type", "mat4")
    doc.append_str("_meta", "0 0 -34 2.34 123 2.34e-4")

    assert names(doc) == ["$api", "name", "version", "type", "uniforms", "_meta"]
    assert doc.get("version").integer == 150
    assert doc.get("uniforms/1/type").string == "mat4"
    assert all(child.parent is doc for child in doc)


def test_append_to_leaf_fails():
    leaf = Node().set_int("x", 1)
    with pytest.raises(InvalidTypeError):
        leaf.append_int(None, 2)


def test_alloc_at_bounds():
    root = Node().make_branch(None, True)
    assert root.alloc_at(1) is None
    assert root.alloc_at(-1) is None
    root.append_int(None, 5)
    blank = root.alloc_at(0)
    assert blank.type == AdtType.UNINITIALISED
    assert blank.parent is root
    assert root.nodes[0] is blank
    assert len(root.nodes) == 2


def test_alloc_on_leaf_is_none():
    assert Node().set_str(None, "x").alloc() is None


# Finding and path lookup


def test_find_shallow_and_deep():
    root = build_doc()
    assert root.find("layer3", False) is None
    assert root.find("layer3", True).integer == 42
    assert root.find("layer1", False).name == "layer1"


def test_find_on_array_is_none():
    root = build_doc()
    assert root.get("array").find("anything", True) is None


def test_get_nested_fields():
    root = build_doc()
    assert root.get("layer1/layer2/layer3").integer == 42


def test_get_field_value_chain():
    root = build_doc()
    node = root.get("uniforms/[name=distort]/layout/[pos=y]/default_value")
    assert node.integer == 7


def test_get_field_value_in_array():
    root = build_doc()
    node = root.get("numbers/[value=42]")
    assert node is root.get("numbers").nodes[1]


def test_get_array_index():
    root = build_doc()
    assert root.get("array/3").integer == 4
    assert root.get("array/9") is None


def test_get_array_value():
    root = build_doc()
    node = root.get("array/[4]")
    assert node is root.get("array").nodes[3]


def test_get_empty_paths_return_self():
    root = build_doc()
    assert root.get("") is root
    assert root.get("/") is root
    assert root.get("/layer1") is root.nodes[0]


def test_get_missing_returns_none():
    root = build_doc()
    assert root.get("nope/deeper") is None
    assert root.get("layer1/layer2/layer3/more") is None


def test_get_invalid_lookup_raises():
    root = build_doc()
    with pytest.raises(ValueError):
        root.get("[abc")
    with pytest.raises(ValueError):
        root.get("[name]")


# Moving, swapping, removing


def test_move_to_other_parent():
    root = Node().make_branch(None, False)
    a = root.append_int("a", 1)
    root.append_int("b", 2)
    arr = root.append_arr("arr")
    moved = a.move(arr)
    assert moved is a
    assert arr.nodes == [a]
    assert a.parent is arr
    assert names(root) == ["b", "arr"]


def test_move_at_within_same_parent():
    root = Node().make_branch(None, False)
    a = root.append_int("a", 1)
    root.append_int("b", 2)
    c = root.append_int("c", 3)
    c.move_at(root, 0)
    assert names(root) == ["c", "a", "b"]
    a.move_at(root, 3)
    assert names(root) == ["c", "b", "a"]


def test_move_into_leaf_fails():
    root = Node().make_branch(None, False)
    a = root.append_int("a", 1)
    b = root.append_int("b", 2)
    with pytest.raises(InvalidTypeError):
        a.move(b)


def test_swap_across_parents():
    left = Node().make_branch(None, True)
    right = Node().make_branch(None, True)
    x = left.append_int("x", 1)
    y = right.append_int("y", 2)
    x.swap(y)
    assert left.nodes == [y]
    assert right.nodes == [x]
    assert x.parent is right
    assert y.parent is left


def test_remove():
    root = Node().make_branch(None, False)
    root.append_int("a", 1)
    b = root.append_int("b", 2)
    root.append_int("c", 3)
    b.remove()
    assert names(root) == ["a", "c"]
    assert b.parent is None


def test_remove_without_parent_fails():
    with pytest.raises(ValueError):
        Node().set_int("x", 1).remove()