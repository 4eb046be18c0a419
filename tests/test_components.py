import pytest

from sigbase.components import (
    ComponentIdentifier,
    ComponentType,
    Parameter,
    SignatureParams,
    Token,
    assemble_signature_base,
    format_component_identifier,
    format_component_line,
    format_signature_params_line,
    serialize_string,
)

METHOD = ComponentIdentifier("@method", ComponentType.DERIVED)


def field(name, *params):
    return ComponentIdentifier(name, ComponentType.FIELD, params)


# --- component identifier --------------------------------------------------


def test_type_inferred_from_name():
    assert ComponentIdentifier("@path").type is ComponentType.DERIVED
    assert ComponentIdentifier("date").type is ComponentType.FIELD


@pytest.mark.parametrize(
    "component, expected",
    [
        (field("content-type"), '"content-type"'),
        (field("content-type", Parameter("sf", True)), '"content-type";sf'),
        (field("example-field", Parameter("bs", False)), '"example-field";bs=?0'),
        (field("example-dict", Parameter("key", "member-name")), '"example-dict";key="member-name"'),
        (field("example-field", Parameter("tag", Token("my-token"))), '"example-field";tag=my-token'),
        (field("example-field", Parameter("count", 42)), '"example-field";count=42'),
        (field("example-field", Parameter("offset", -100)), '"example-field";offset=-100'),
        (field("example-field", Parameter("hash", b"Hello World")), '"example-field";hash=:SGVsbG8gV29ybGQ=:'),
        (
            field(
                "complex-field",
                Parameter("sf", True),
                Parameter("key", "member"),
                Parameter("count", 10),
                Parameter("token", Token("abc")),
            ),
            '"complex-field";sf;key="member";count=10;token=abc',
        ),
        (field("example-field", Parameter("data", b"")), '"example-field";data=::'),
        (field("example-field", Parameter("name", "")), '"example-field";name=""'),
        (field("example-field", Parameter("count", 0)), '"example-field";count=0'),
        (
            ComponentIdentifier("@query-param", ComponentType.DERIVED, (Parameter("name", "search"),)),
            '"@query-param";name="search"',
        ),
        (
            ComponentIdentifier("@method", ComponentType.DERIVED, (Parameter("req", True),)),
            '"@method";req',
        ),
        (field("x-trailer", Parameter("tr", True)), '"x-trailer";tr'),
        (field("content-type", Parameter("bs", False)), '"content-type";bs=?0'),
    ],
)
def test_format_component_identifier(component, expected):
    assert format_component_identifier(component) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ('search"query', '"@query-param";name="search\\"query"'),
        ("path\\to\\file", '"@query-param";name="path\\\\to\\\\file"'),
        ('search";sf', '"@query-param";name="search\\";sf"'),
    ],
)
def test_component_identifier_escaping(value, expected):
    comp = ComponentIdentifier("@query-param", parameters=[Parameter("name", value)])
    assert format_component_identifier(comp) == expected


def test_key_parameter_with_both_escapes():
    comp = field("example-dict", Parameter("key", 'member\\"name'))
    assert format_component_identifier(comp) == '"example-dict";key="member\\\\\\"name"'


def test_unsupported_parameter_value_raises():
    with pytest.raises(TypeError):
        format_component_identifier(field("x", Parameter("f", 1.5)))


def test_serialize_string():
    assert serialize_string('a"b\\c') == '"a\\"b\\\\c"'
    assert serialize_string("") == '""'


# --- component line ---------------------------------------------------------


@pytest.mark.parametrize(
    "component, value, expected",
    [
        (field("content-type"), "application/json", '"content-type": application/json'),
        (METHOD, "POST", '"@method": POST'),
        (field("content-type", Parameter("sf", True)), "application/json", '"content-type";sf: application/json'),
        (
            field("example-dict", Parameter("key", "member-key")),
            "member-value",
            '"example-dict";key="member-key": member-value',
        ),
        (
            ComponentIdentifier("@method", parameters=[Parameter("req", True)]),
            "POST",
            '"@method";req: POST',
        ),
        (field("x-trailer", Parameter("tr", True)), "trailer-value", '"x-trailer";tr: trailer-value'),
        (field("example-field"), "  value with spaces  ", '"example-field":   value with spaces  '),
        (field("empty-field"), "", '"empty-field": '),
        (
            field("special-field"),
            'value with "quotes" and \\backslashes\\',
            '"special-field": value with "quotes" and \\backslashes\\',
        ),
    ],
)
def test_format_component_line(component, value, expected):
    assert format_component_line(component, value) == expected


# --- signature params line --------------------------------------------------


def test_params_line_empty_components():
    assert format_signature_params_line([], SignatureParams()) == '"@signature-params": ()'


def test_params_line_single_component():
    assert format_signature_params_line([METHOD], SignatureParams()) == '"@signature-params": ("@method")'


def test_params_line_multiple_components():
    comps = [METHOD, ComponentIdentifier("@path"), field("content-type")]
    assert (
        format_signature_params_line(comps, SignatureParams())
        == '"@signature-params": ("@method" "@path" "content-type")'
    )


@pytest.mark.parametrize(
    "params, suffix",
    [
        (SignatureParams(created=1618884473), ";created=1618884473"),
        (SignatureParams(expires=1618884473), ";expires=1618884473"),
        (SignatureParams(nonce="random-nonce-value"), ';nonce="random-nonce-value"'),
        (SignatureParams(algorithm="rsa-pss-sha512"), ';alg="rsa-pss-sha512"'),
        (SignatureParams(key_id="test-key-rsa-pss"), ';keyid="test-key-rsa-pss"'),
        (SignatureParams(tag="custom-tag"), ';tag="custom-tag"'),
        (SignatureParams(key_id='my"key'), ';keyid="my\\"key"'),
        (SignatureParams(key_id="my\\key"), ';keyid="my\\\\key"'),
        (SignatureParams(key_id='key";created=9999999999'), ';keyid="key\\";created=9999999999"'),
        (SignatureParams(nonce='say "hello\\world"'), ';nonce="say \\"hello\\\\world\\""'),
        (SignatureParams(algorithm='alg"test'), ';alg="alg\\"test"'),
        (SignatureParams(tag='tag"test'), ';tag="tag\\"test"'),
    ],
)
def test_params_line_single_metadata(params, suffix):
    assert format_signature_params_line([METHOD], params) == '"@signature-params": ("@method")' + suffix


def test_params_line_all_metadata_in_canonical_order():
    params = SignatureParams(
        tag="test-tag",
        key_id="test-key-rsa-pss",
        algorithm="rsa-pss-sha512",
        nonce="test-nonce",
        expires=1618884773,
        created=1618884473,
    )
    got = format_signature_params_line([METHOD, ComponentIdentifier("@path")], params)
    assert got == (
        '"@signature-params": ("@method" "@path");created=1618884473;expires=1618884773;'
        'nonce="test-nonce";alg="rsa-pss-sha512";keyid="test-key-rsa-pss";tag="test-tag"'
    )


def test_params_line_components_with_parameters():
    comps = [
        field("content-type", Parameter("sf", True)),
        field("example-dict", Parameter("key", "member-key"), Parameter("sf", True)),
    ]
    assert (
        format_signature_params_line(comps, SignatureParams())
        == '"@signature-params": ("content-type";sf "example-dict";key="member-key";sf)'
    )


# --- signature base assembly ------------------------------------------------


def test_assemble_single_line():
    got = assemble_signature_base(['"@method": POST'], '"@signature-params": ("@method")')
    assert got == '"@method": POST\n"@signature-params": ("@method")'


def test_assemble_multiple_lines():
    lines = ['"@method": POST', '"@path": /foo', '"content-type": application/json']
    got = assemble_signature_base(lines, '"@signature-params": ("@method" "@path" "content-type")')
    assert got == (
        '"@method": POST\n"@path": /foo\n"content-type": application/json\n'
        '"@signature-params": ("@method" "@path" "content-type")'
    )


def test_assemble_no_component_lines():
    assert assemble_signature_base([], '"@signature-params": ()') == '"@signature-params": ()'


def test_assemble_empty_values():
    got = assemble_signature_base(
        ['"empty-field": ', '"@method": GET'], '"@signature-params": ("empty-field" "@method")'
    )
    assert got == '"empty-field": \n"@method": GET\n"@signature-params": ("empty-field" "@method")'


def test_assemble_with_metadata():
    line = '"@signature-params": ("@method");created=1618884473;keyid="test-key-rsa-pss"'
    got = assemble_signature_base(['"@method": POST'], line)
    assert got == '"@method": POST\n' + line


def test_assemble_no_trailing_newline():
    got = assemble_signature_base(['"@method": POST', '"@path": /foo'], '"@signature-params": ("@method" "@path")')
    assert not got.endswith("\n")
    assert got.count("\n") == 2


def test_assemble_rfc_example():
    lines = [
        '"date": Sun, 05 Jan 2014 21:31:40 GMT',
        '"@method": POST',
        '"@path": /foo',
        '"@authority": example.com',
        '"content-type": application/json',
        '"content-digest": sha-512=:WZDPaVn/7XgHaAy8pmojAkGWoRx2UFChF41A2svX+TaPm+AbwAgBWnrIiYllu7BNNyealdVLvRwEmTHWXvJwew==:',
        '"content-length": 18',
    ]
    params_line = (
        '"@signature-params": ("date" "@method" "@path" "@authority" "content-type" '
        '"content-digest" "content-length");created=1618884473;keyid="test-key-rsa-pss"'
    )
    got = assemble_signature_base(lines, params_line)
    assert got.count("\n") == len(lines)
    assert not got.endswith("\n")
    assert '"date": Sun, 05 Jan 2014 21:31:40 GMT' in got
    assert '"@method": POST' in got
    assert '"@signature-params": ("date" "@method"' in got