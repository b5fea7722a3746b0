# mispbridge

Building blocks for turning case messages coming from TheHive into
pieces of MISP format documents: attributes, file objects, event tags
and galaxy tags.

## Installation

```
pip install .
```

The only runtime dependency is PyYAML, used for reading configuration
files. Install the `test` extra to run the tests with pytest.

## Modules

- `mispbridge.decode` flattens a JSON case message into its leaf values.
  `decode_message(data)` takes bytes or text holding a JSON object or
  array and returns a list of `DecodedField` records, each with the
  field name, a value type (`"string"`, `"float"`, `"bool"`), the value
  and its dotted path such as `event.object.title` or
  `observables.dataType`. JSON numbers come back as floats. Invalid
  JSON, an empty object or array, and any other top level raise
  `DecodeError` (a `ValueError`). `process_map`, `process_list` and
  `process_simple` are the generators and helper behind it; elements of
  a list keep the path of the list itself.
- `mispbridge.attributes` holds `AttributesMisp`, a MISP attribute with
  the defaults MISP expects (category `"Other"`, type `"other"`,
  distribution `"2"`, sharing group `"1"`, `to_ids` true, a fresh UUID),
  and `AttributesMispList`, attributes keyed by observable number. Each
  `set_*` method creates the attribute when the number is new.
  `handle_data_type` fills in category and type for known data types
  such as `md5`, `url`, `domain`, `snort_sid` or `ja3`. `set_value`
  reduces a value shaped like `8030073:193.29.19.55` to the address and
  marks it as `Network activity`. `handling_list_tags` extracts
  `(category, type)` pairs from tags written `misp:<category>="<type>"`.
- `mispbridge.objects` holds `ObjectsMisp` and `ObjectsMispList` for
  file objects built from observable attachments, and
  `AttributeTmpList`, which collects attachment names and hashes as
  `AttributeMisp` records; hex digests are recognised by length as
  md5, sha1, sha224, sha256, sha384 or sha512.
- `mispbridge.tags` parses observable tags:
  `check_misp_observables_tag` splits `misp:<category>="<type>"` and
  raises `ValueError` otherwise; `get_type_name_observables_tag` reads
  `type:<name>` tags and plain type names.
- `mispbridge.tracking` holds the bookkeeping types used while walking a
  message: `DecodedField`, `StorageValueName`, `ExclusionRules` and
  `MispGalaxyTags`.
- `mispbridge.assembly` brings the pieces together: applying observable
  tags (`handle_observables_tags`), removing excluded attributes
  (`del_element_attributes`, `SupportiveExcludeRule`), collecting TTP
  pattern fields into galaxy tags (`galaxy_tags_collector`,
  `create_galaxy_tags`, giving tags such as
  `misp-galaxy:mitre-attack-pattern="Name - T1036.005"`), and producing
  the final lists with `get_new_list_attributes` and
  `get_new_list_objects`.
- `mispbridge.common` holds `MessageLogging`, `DataCounterSettings`,
  `EventObjectTags` (keeps only tags mentioning `ats`, `sensor`,
  `misp-galaxy` or `class-attack`, case-insensitively) and
  `MispFormatError.from_dict` for MISP error replies.
- `mispbridge.thehive` models the incoming TheHive message
  (`MainMessage.from_dict`, which raises `TypeError` for members of the
  wrong type and `ValueError` for negative dates) and the reply sent
  back (`ResponseMessage` with `add_command` and `to_dict`).
- `mispbridge.formats` and `mispbridge.clusters` model MISP tags
  (`TagsMisp`), galaxy elements (`GalaxyElementMisp`), event tag links
  (`EventObjectTagsMisp`) and galaxy clusters (`GalaxyClustersMisp`).
- `mispbridge.config` loads the application configuration.

## Example

```python
from mispbridge.attributes import AttributesMispList
from mispbridge.assembly import get_new_list_attributes

attributes = AttributesMispList()
attributes.set_value("d41d8cd98f00b204e9800998ecf8427e", 0)
attributes.handle_data_type("md5", 0)

payload = [a.to_dict() for a in get_new_list_attributes(attributes.as_dict(), {})]
# payload[0]["category"] == "Payload delivery", payload[0]["type"] == "md5"
```

## Configuration

`load_config(config_dir, environ=None)` reads `config.yaml` from the
given directory (`LOGGING`, `ORGANIZATIONS` and `ZABBIX` sections), then
`config_prod.yaml`, or `config_dev.yaml` when `GO_PHMISP_MAIN` is
`development` (`NATS`, `MISP`, `REDIS`, `THEHIVE` and
`RULES_PROC_MSG_FOR_MISP` settings). Section and key names are matched
without regard to case. A Zabbix port that is missing or out of range
becomes 10051. Values from the environment mapping (`os.environ` when
none is given) override the files:

| Variable | Setting |
| --- | --- |
| `GO_PHMISP_NHOST`, `GO_PHMISP_NPORT` | NATS host and port |
| `GO_PHMISP_NSUBSENDERCASE`, `GO_PHMISP_NSUBLISTENERCOMMAND` | NATS subscriptions |
| `GO_PHMISP_MHOST`, `GO_PHMISP_MAUTH` | MISP host and key |
| `GO_PHMISP_REDISHOST`, `GO_PHMISP_REDISPORT` | Redis host and port |
| `GO_PHMISP_RULES_DIR`, `GO_PHMISP_RULES_FILE` | rule directory and file |

The result is a `ConfigApp`. `ConfigApp.validate` checks the Zabbix,
NATS and Redis ports, the NATS cache lifetime (11 to 86400) and the
required hosts and subscriptions. A missing directory or file, invalid
YAML or a failed check raises `ConfigError`.

## What this package does not do

- It does not build the MISP event record itself; it supplies the
  attributes, objects and tags that go with one.
- It does not connect to NATS, MISP, Redis or Zabbix, and it has no
  rule engine for deciding which cases are passed on; the configuration
  describes those services but nothing here uses it to reach them.
- It has no command-line program or long-running service; it is a
  library to be called from one.