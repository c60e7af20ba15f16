"""apidocs -- register API documentation on a hosting platform and export it.

Documentation fragments are attached to precise locations of a deployed
REST API (the API itself, an authorizer, a path parameter, a request
header, ...). A *version snapshot* freezes the current set of fragments,
and the export pipeline asks the platform for the OpenAPI 3.0 document
with that documentation merged in.

Typical workflow::

    apidocs init --api-id dekq8mivw9 --stage prod
    apidocs apply examples/todo-api.docs.yaml
    apidocs versions promote <version>
    apidocs export -o openapi.json

Modules:
    app: Typer application and CLI entry point.
    handler: Serverless entry point serving the exported document.
    registry: Documentation fragment store.
    versions: Version snapshot manager.
    export: OAS3 export pipeline.
    manifest: Manifest files and the registration pass.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration and profile management.
    exceptions: Exception hierarchy with exit-code mapping.
"""

__version__ = "0.1.0"
