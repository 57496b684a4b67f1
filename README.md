# sicdb

Build, serialise and encrypt SafeInCloud password database files.

A SafeInCloud database is an XML document that is zlib-compressed and then
encrypted with AES-256-CBC. The `<database>` element holds labels, cards,
fields, attachments and tombstones for deleted cards. The key that encrypts
the body is itself encrypted with a key derived from the user's password.
That derivation uses PBKDF2-HMAC-SHA1 with 10000 iterations.

## Installation

```
pip install sicdb
```

## The data model

`sicdb.model` provides these dataclasses:

- `Database`, with the lists `notes`, `label_ids`, `files`, `ghosts`, `labels`
  and `cards`.
- `Card`, whose `fields` list holds `Field` objects.
- `Label`, `Ghost` and `File`.

Every attribute is a string and defaults to `""`.

```python
from sicdb.model import Card, Database, Field, Label, marshal, unmarshal

db = Database(
    labels=[Label(id="1", name="Work")],
    cards=[
        Card(
            id="100",
            title="Mail account",
            fields=[
                Field(name="Login", type="login", text="user@example.com"),
                Field(name="Password", type="password", text="secret"),
            ],
        )
    ],
)

raw = marshal(db)
again = unmarshal(raw)
assert again.cards[0].title == "Mail account"
```

`marshal` returns UTF-8 bytes. The output begins with the XML declaration in
`XML_HEADER` and is indented with tabs.

The `first_stamp` attribute of a card is left out when it is empty. So is the
`autofill` attribute of a card or a field. Every other attribute is always
written.

`unmarshal` accepts bytes or a string. It raises `DatabaseFormatError`, a
subclass of `ValueError`, in two cases:

- the input is not well-formed XML;
- the root element is not `<database>`.

Attachments are stored as a list of lists. `marshal` writes every `File` in
`files` as a `<file>` element. `unmarshal` puts each `<file>` element into a
list of its own.

## Encrypting

```python
from sicdb.encrypt import encrypt

password = "password"
payload = encrypt(raw, password)

with open("my.db", "wb") as fh:
    fh.write(payload)
```

Every call uses a fresh random salt, fresh nonces and a fresh inner key.
Encrypting the same XML twice therefore gives different bytes.

Two helpers for the format are also in `sicdb.encrypt`:

- `write_byte_array(stream, data)` writes a byte string to the stream after a
  one-byte length prefix. It raises `ValueError` when the data is longer than
  255 bytes.
- `pkcs7_pad(data, block_size)` applies PKCS#7 padding.

## Sample data for tests

`sicdb.fixture` builds a small database, for tests that need an encrypted
payload without a checked-in file.

```python
from sicdb.fixture import generate_test_db, sample_database

db = sample_database()
password = "password"
payload = generate_test_db(password)
```

`sample_database()` returns a database with one label and one card, and the
card has two fields.

## What this package does not do

The package only writes encrypted databases. It cannot decrypt a `.db`
payload, so it cannot check a password either. It has no command-line
program.

## Running the tests

```
pip install -e ".[test]"
pytest
```