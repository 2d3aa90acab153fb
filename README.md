# propertyhub

Small HTTP services for publishing, discussing and searching property listings.

## Installing

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Commands

| Command | What it runs | Default port |
| --- | --- | --- |
| `propertyhub-properties` | Property listings in MongoDB, cached in memcached, announced on the RabbitMQ `properties` topic exchange | 8090 |
| `propertyhub-messages` | Messages that users leave on properties, stored in MongoDB | 8070 |
| `propertyhub-search` | Indexes properties into Solr and answers search queries | 8000 |
| `propertyhub-consumer` | Listens on the `properties` exchange and asks the search service to index each new property | none |

Options:

- `propertyhub-properties`: `--host` (default `0.0.0.0`), `--port`, `--mongo-uri` (default `mongodb://localhost:27017`), `--database` (default `properties`), `--cache-host` (default `memcached`), `--cache-port` (default `11211`).
- `propertyhub-messages`: `--host`, `--port`, `--mongo-uri`, `--database` (default `messages`).
- `propertyhub-search`: `--host`, `--port`, `--solr-url` (default `http://solr:8983`), `--collection` (default `property`), `--properties-url` (default `http://host.docker.internal:8090`). Logs go to stdout as JSON lines.
- `propertyhub-consumer`: `--search-url` (default `http://host.docker.internal:8000`), `--topic` (default `*.*`). The broker settings come from `propertyhub.consumer.ConsumerConfig`: user `user` on host `rabbit`, port 5672, queue `consumer_solr`.

If MongoDB cannot be reached, the messages and properties commands print `Cannot init db` and exit with status 1.

## Endpoints

Properties service:

- `GET /properties/<id>/id`: one property. It is served from memcached when the cache has it.
- `GET /properties/all`: every property.
- `GET /properties/<param>`: the distinct values of a field. Only `city` is recognised; any other name gives an empty list.
- `POST /properties/load`: create one property. The new property is cached, published as `<id>.create`, and its `image` URL is downloaded into `<id>.jpg` in the working directory on a background thread.
- `POST /properties/import`: create several properties from a JSON array.
- `DELETE /propertydelete/<id>`: delete one property.
- `DELETE /propertiesdelete/<userid>`: delete every property of a user.

Messages service:

- `GET /messages/<id>`: one message.
- `GET /properties/<id>/messages`: the messages left on a property.
- `POST /message`: create a message. `created_at` is set by the service to the current time minus three hours, formatted `YYYY/MM/DD HH:MM:SS`.
- `DELETE /messages/<id>`: delete one message.
- `DELETE /messages2/<userid>`: delete every message of a user.

Search service:

- `GET /search/<query>`: run a Solr query on the `text` field and return the matching documents.
- `GET /properties/<id>`: fetch the property from the properties service and add it to the index.

Errors come back as JSON objects with `message`, `error`, `status` and `cause` fields. They are built by the helpers in `propertyhub.errors`: `bad_request`, `not_found`, `internal_server_error` and the others. `api_error_from_bytes` reads such an object back.

## Using the pieces as a library

Each service is built around an object that takes its collaborators as arguments, so it can run against test doubles:

```python
from propertyhub.messages_app import create_app
from propertyhub.message_service import MessageService
from propertyhub.messages_store import MessageStore

app = create_app(MessageService(MessageStore(database), clock))
```

The other services are put together the same way:

- `propertyhub.properties_app.create_app(service, cache)` with `propertyhub.property_service.PropertyService(store, publisher, downloader)`. The `cache` can be `propertyhub.property_cache.MemcacheClient` or any object with `get` and `set`.
- `propertyhub.search_app.create_app(service)` with `propertyhub.search_service.SearchService(solr, properties_url, session)` and `propertyhub.solr_client.SolrClient(base_url, collection, session)`.
- `propertyhub.consumer.ConsumerService(queue, search_url, session)` with `propertyhub.consumer.QueueConsumer(connection, queue_name)`.

## User storage

`propertyhub.users_store` defines these pieces:

- The `User` SQLAlchemy model.
- The `UserDto`, `LoginDto` and `TokenDto` data classes.
- `UserStore`, which has `create_tables`, `get_by_id`, `get_all`, `insert`, `get_by_user_name` and `delete`.

`database_url(user, password, host, name)` builds a `mysql+pymysql` URL. The PyMySQL driver is not installed with this package, so install it yourself to use that URL. `UserStore` also works with any engine SQLAlchemy supports, such as SQLite.

## What this package does not do

- It has no HTTP service or command for users.
- It does not check logins or issue tokens. `LoginDto` and `TokenDto` are plain data shapes only.
- `delete_command` builds a Solr delete command, but no service sends one.