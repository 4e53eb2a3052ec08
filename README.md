# safepkt

safepkt verifies smart contracts written as Rust libraries. It stores
uploaded sources, scaffolds a buildable Cargo project around each one and
runs verification steps (symbolic verification, fuzzing, listing of
uploaded sources and source restoration) inside Docker containers started
from a verification-tools image. It talks to the Docker Engine API over a
Unix socket (`/var/run/docker.sock`, or the path of a `unix://` value in
`DOCKER_HOST`).

It comes with two commands: `safepkt`, a command-line tool, and
`safepkt-server`, an HTTP server.

## Installation

```console
pip install .
```

For running the test suite:

```console
pip install ".[test]"
pytest
```

## Configuration

Settings are read from the environment; a `.env` file in the working
directory is loaded as well.

| Variable                          | Purpose                                                          |
|-----------------------------------|------------------------------------------------------------------|
| `SOURCE_DIRECTORY`                | Directory where uploaded sources are saved (`<id>.rs.b64`)       |
| `UID_GID`                         | `uid:gid` given to scaffolded projects and passed to containers  |
| `RVT_DIRECTORY`                   | Host directory holding the verification tools                    |
| `VERIFICATION_SCRIPT`             | Host path of the verification script mounted in containers       |
| `UPLOADED_SOURCES_LISTING_SCRIPT` | Host path of the script listing uploaded sources                 |
| `RVT_DOCKER_IMAGE`                | Image the verification containers are started from               |
| `HOST`, `PORT`                    | Address the HTTP server listens on                               |
| `LOG_LEVEL`                       | Logging level (default `info`); logs are written as JSON lines   |
| `DOCKER_HOST`                     | Optional `unix://` path of the Docker socket                     |

A project id is the first ten hexadecimal characters of the SHA-256
digest of the stored content. Projects are scaffolded under the system
temporary directory, one directory per project id, holding
`src/lib.rs` (the decoded source) and `Cargo.toml`. Before a step other
than `uploaded_sources_listing` starts, the project is scaffolded and its
directory is handed to `UID_GID` with mode `0770`; if the uploaded source
cannot be found, scaffolding is skipped.

Each step runs in a container named `<step name>-<project id>`; a
container left from an earlier run of the same step is removed first.

## Command line

```console
safepkt verify_program --source /path/to/contract.rs
safepkt verify_program --source /path/to/contract.rs --fuzz
```

`--source` (`-s`) names the contract file; `--fuzz` (`-f`) runs the
`program_fuzzing` step instead of `program_verification`. The command
stores the base64 encoding of the file, starts the step, prints a dot
every two seconds while the container is running and then prints the
container's logs. Without a subcommand it tells you to pass `--help`.

## HTTP server

```console
safepkt-server
```

Routes, all answering with JSON:

| Method   | Path                               | Action                                               |
|----------|------------------------------------|------------------------------------------------------|
| `POST`   | `/source`                          | Save `{"source": "<base64>"}`, returns `project_id`  |
| `GET`    | `/steps`                           | List the available step names                        |
| `POST`   | `/{stepName}/{projectId}`          | Start a step; optional body `{"flags": "..."}`       |
| `GET`    | `/{stepName}/{projectId}/progress` | Container status of a step (`raw_status` and more)   |
| `GET`    | `/{stepName}/{projectId}/report`   | Logs of a step                                       |
| `DELETE` | `/{stepName}/{projectId}`          | Stop a running step                                  |

Step names are `program_verification`, `program_fuzzing`,
`uploaded_sources_listing` and `source_restoration`; dashes in a step
name given in a URL are read as underscores. Flags are appended to the
command of `program_verification` only. A failing step operation
answers with status 400 and `{"error": "..."}`. All responses allow
any origin.

## Library use

The building blocks can be used directly, for example:

```python
import os

from safepkt.file_system import save_content_in_file_system
from safepkt.manifest import make_manifest
from safepkt.runtime import build_steps, steps_names

os.environ["SOURCE_DIRECTORY"] = "/tmp"
path, project_id = save_content_in_file_system(b"Zm4gbWFpbigpIHt9")
manifest = make_manifest("safepkt_" + project_id, "/home/rust-verification-tools")
print(steps_names())
```

`safepkt.server.create_app` takes a factory of container API clients,
so the web application can be run against something other than a live
Docker engine.

## What it does not do

safepkt does not build or pull the verification-tools image, nor does it
provide the verification and listing scripts mounted into containers;
these must exist on the host and be named in the configuration.