# onosconfig

Helpers for network device configuration in gNMI terms. The package parses
and prints gNMI paths and renders values as text. It matches wild-carded
paths and converts between gNMI typed values and native values. It builds
JSON trees from path/value lists. It also keeps configurations, proposals
and transactions in in-memory stores that reject stale updates.

## Installation

```
pip install .
```

Run the tests with:

```
pip install ".[test]"
pytest
```

## Paths (`onosconfig.gnmi`)

```python
from onosconfig.gnmi import split_path, parse_gnmi_elements, str_path

elements = split_path("/network-instances[name=DEFAULT]/network-instance")
path = parse_gnmi_elements(elements)
assert str_path(path) == "/network-instances[name=DEFAULT]/network-instance"
```

- `split_path` and `split_paths` split paths into elements. A `/` inside a
  `[...]` key, or after a backslash, does not split.
- `parse_gnmi_elements` builds a `Path` of `PathElem` objects and honours
  backslash escapes. A malformed key, such as a missing `]`, `=`, key name or
  value, raises `InvalidError`.
- `str_path` and `str_path_elem` render a path as text, with keys sorted
  alphabetically.
- `str_val` renders a gNMI `TypedValue` as text. Decimals come out as
  `123.456`. JSON is indented by two spaces. Bytes are base64-encoded.
  Floats are shown as 32-bit values, and leaf-lists as `[a, b]`.

## Wildcards (`onosconfig.wildcards`)

```python
from onosconfig.wildcards import match_wildcard_regexp

pattern = match_wildcard_regexp("/ww/*/xx[name=*]/yy", exact=True)
assert pattern.match("/ww/aa/xx[name=eth1]/yy")
```

In `match_wildcard_regexp`, `*` matches a run of name characters, which
never includes `/`. `...` matches anything, `/` included.
`match_wildcard_ch_name_regexp` treats `?` as exactly one name character and
`*` as any run of them. With `exact=False` the pattern is anchored only at
the start.

## Model paths (`onosconfig.model`, `onosconfig.path`)

`onosconfig.model` defines `ValueType`, `Width`, the native `TypedValue`,
`PathValue`, `ReadWritePath` and `ReadOnlySubPath`.

`onosconfig.path` provides:

- `remove_path_indices` and `anonymize_path_indices` strip list indices or
  replace their values with `*`.
- `extract_index_names` and `check_path_index_is_valid` read and check index
  values.
- `find_path_from_model` looks a path up in a mapping of read-write model
  paths. It returns `(is_exact, ReadWritePath)`.
- `check_key_value` checks that a key leaf agrees with its list index.
- `is_path_valid` and `get_parent_path` check a path and return its parent.
- `ReadOnlyPathMap` offers `just_paths()` and `type_for_path()`.

## Values and changes (`onosconfig.values`, `onosconfig.change`)

`gnmi_typed_value_to_native_type` and `native_type_to_gnmi_typed_value`
convert values in both directions. Integer widths and decimal precision come
from an optional `ReadWritePath`. `new_change_value` validates a path and
returns a `PathValue`. `path_values_to_gnmi_change` turns path values into a
gNMI `SetRequest` addressed to a target: deleted paths become deletes, and
the rest become updates.

## Trees (`onosconfig.tree`)

`build_tree(values, json_rfc7951)` returns indented JSON as bytes. Keys are
sorted, and lists are keyed by their index values. With `json_rfc7951=True`,
64-bit integers, decimals and floats are written as strings.
`prune_path_values` and `prune_path_map` drop deleted subtrees. They can
optionally keep the top deleted path as a tomb-stone.

## Policy input and authorisation (`onosconfig.opa`, `onosconfig.rbac`)

`format_input` wraps a JSON tree in an `input` object that carries groups and
a target. It swaps `-` for `_`, and `_` for `^`. `format_output` reverses the
swap. It returns `''` for an empty result and raises `InvalidError` when
there is no `"result":`. `temporary_evaluate(metadata)` accepts a caller when
one of its `;`-separated `groups` appears in the `ADMINGROUPS` environment
variable. Otherwise it raises `UnauthenticatedError`.

## Stores

`ConfigurationStore`, `ProposalStore` and `TransactionStore` each sit on a
`PrimitiveClient` from `onosconfig.primitive`. Several stores opened on one
client share their data. Every update checks the stored version, so an
update made from a stale copy raises `ConflictError`. `watch` puts events on
a `queue.Queue`. It can replay the current contents first, for everything or
for one ID. Watching ends when the store is closed, and stores can be used
as context managers. Transactions are numbered from 1 and can be fetched with
`get_by_index`.

```python
import queue
from onosconfig.primitive import PrimitiveClient
from onosconfig.transaction import Transaction, TransactionStore

client = PrimitiveClient()
store = TransactionStore(client)
events = queue.Queue()
store.watch(events, replay=True)
tx = Transaction(id="transaction-1")
store.create(tx)
assert tx.index == 1
```

## Errors

Failures raise subclasses of `onosconfig.errors.ConfigError`:
`InvalidError`, `NotFoundError`, `AlreadyExistsError`, `ConflictError`,
`UnauthenticatedError` and `UnsupportedError`.

## What it does not do

The stores keep their data in memory, within one process. Nothing is
persisted or shared across machines. The package runs no gNMI server or
client, opens no network connections and has no topology store. It provides
no command-line program.