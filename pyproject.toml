[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "propertyhub"
version = "0.1.0"
description = "Property listing services: listings, messages, search indexing, a queue consumer and user storage."
requires-python = ">=3.10"
keywords = ["real-estate", "listings", "flask", "mongodb", "solr", "rabbitmq", "memcached"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
]
dependencies = [
    "flask",
    "pymongo",
    "pika",
    "requests",
    "sqlalchemy",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
propertyhub-messages = "propertyhub.messages_app:main"
propertyhub-properties = "propertyhub.properties_app:main"
propertyhub-search = "propertyhub.search_app:main"
propertyhub-consumer = "propertyhub.consumer:main"

[tool.hatch.build.targets.wheel]
packages = ["propertyhub"]

[tool.pytest.ini_options]
addopts = "-ra"
