# sigbase

`sigbase` builds the *signature base* defined by RFC 9421 (HTTP Message
Signatures): the canonical text that a signer signs and a verifier
recomputes. It handles HTTP requests and responses, HTTP fields and derived
components, and the `@signature-params` line.

It has no runtime dependencies and supports Python 3.10 and later.

## Example

```python
from sigbase.build import build
from sigbase.components import ComponentIdentifier, SignatureParams
from sigbase.message import Request

request = Request(
    "POST",
    "https://example.com/foo?param=Value&Pet=dog",
    headers={"Content-Type": "application/json"},
)
components = [
    ComponentIdentifier("@method"),
    ComponentIdentifier("@authority"),
    ComponentIdentifier("@path"),
    ComponentIdentifier("@query"),
    ComponentIdentifier("content-type"),
]
params = SignatureParams(created=1618884473, key_id="test-key-rsa-pss")
print(build(request, components, params))
```

prints

```
"@method": POST
"@authority": example.com
"@path": /foo
"@query": ?param=Value&Pet=dog
"content-type": application/json
"@signature-params": ("@method" "@authority" "@path" "@query" "content-type");created=1618884473;keyid="test-key-rsa-pss"
```

Lines are joined with a single LF and there is no trailing newline. An empty
component list is valid and yields just the `@signature-params` line. The
`params` argument may be left out, in which case no metadata is written.

A response can cover parts of the request it answers through the `req`
parameter:

```python
from sigbase.components import ComponentIdentifier, Parameter
from sigbase.message import Response

response = Response(200, headers={"Content-Type": "application/json"},
                    related_request=request)
build(response, [
    ComponentIdentifier("@status"),
    ComponentIdentifier("@method", parameters=(Parameter("req"),)),
])
```

## Modules

- `sigbase.message` – the messages a signature base is built from.
  `Request(method, url, headers=..., trailers=..., host="", tls=False)` and
  `Response(status_code, headers=..., trailers=..., related_request=None)`.
  Headers and trailers may be given as a `Headers` object, a mapping of
  names to a value or a list of values, or a sequence of `(name, value)`
  pairs. `Headers` is an ordered, case-insensitive, multi-valued store with
  `add`, `set` and `get_all`. `Request.target_url()` returns the URL split
  into parts, filling in a missing scheme (`https` when `tls` is true,
  otherwise `http`) and a missing host from `host`, as a server sees an
  incoming request. Reading `status_code` on a request, or `method` or
  `target_url` on a response, raises `MessageKindError`.
- `sigbase.components` – the data model and the text formatting.
  `ComponentIdentifier(name, type=None, parameters=())` infers its
  `ComponentType` (`FIELD` or `DERIVED`) from a leading `@` when no type is
  given. `Parameter(key, value=True)` takes a `bool`, `int`, `str`, `bytes`
  or `Token` value. `SignatureParams` holds `created`, `expires`, `nonce`,
  `algorithm`, `key_id` and `tag`. The formatters are
  `format_component_identifier`, `format_component_line`,
  `format_signature_params_line`, `assemble_signature_base` and
  `serialize_string`, which escapes `\` and `"` so that a value such as a key
  id cannot inject extra parameters.
- `sigbase.extract` – component value extraction:
  `extract_component_value`, `extract_http_field_value`,
  `extract_derived_component_value` and `normalize_line_folding`. Failures
  raise `ComponentError`, a `ValueError`.
- `sigbase.structured` – the RFC 8941 structured field support used by the
  `sf` and `key` parameters: `parse_dictionary`, `parse_list`, `parse_item`,
  `serialize_item`, `serialize_inner_list`, `serialize_dictionary` and
  `serialize_list`, with the `Item` and `InnerList` types. Malformed input
  raises `StructuredFieldError`, a `ValueError`.
- `sigbase.build` – `build`, which ties the above together; a component that
  cannot be extracted raises `ComponentError` naming that component.

## Supported components

Derived components:

| Component          | Messages  | Value                                             |
|--------------------|-----------|---------------------------------------------------|
| `@method`          | requests  | the request method                                |
| `@target-uri`      | requests  | the full target URI                               |
| `@authority`       | requests  | host and port                                     |
| `@scheme`          | requests  | the URL scheme                                    |
| `@request-target`  | requests  | path plus query, path `/` when empty              |
| `@path`            | requests  | the path as written, `/` when empty               |
| `@query`           | requests  | `?` plus the raw query, `?` alone when absent     |
| `@query-param`     | requests  | first decoded value of the `name` parameter       |
| `@status`          | responses | the status code                                   |

Any other `@` name raises `ComponentError`, as does using a component on the
wrong kind of message.

HTTP fields are looked up case-insensitively; a missing field is an error.
Multiple values are trimmed and joined with `", "`; obsolete line folding
becomes a single space, while a bare CR, LF or CRLF in a value is rejected
to prevent signature base injection.

Component parameters:

- `tr` – read the field from trailers instead of headers.
- `sf` – re-serialize the value as a structured field (dictionary, list or
  item, tried in that order).
- `key` – take one member of a structured dictionary; requires `sf`.
- `bs` – encode the value as a byte sequence, `:base64:`; cannot be combined
  with `sf`.
- `req` – on a response, take the component from `related_request`.

Signature parameters are always written in the order `created`, `expires`,
`nonce`, `alg`, `keyid`, `tag`, and only those that are set appear.

## What it does not do

`sigbase` only produces the signature base text. It does not create or
verify signatures, does not hold keys, does not parse or write the
`Signature` and `Signature-Input` header fields, and has no command-line
tool or integration with HTTP client or server libraries; messages are
described with its own `Request` and `Response` types.

## Running the tests

The tests use pytest, available through the `test` extra
(`pip install "sigbase[test]"`); run `pytest` from the project directory.