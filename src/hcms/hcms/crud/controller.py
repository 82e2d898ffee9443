from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import Guards, json_body
from ..container import Container
from .service import parse_list_query


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.auth_service)
    crud = container.crud_service

    @app.route("/api/<collection>/count", methods=["GET"], endpoint="crud_count")
    @guards.login_required
    def crud_count(collection: str):
        return jsonify({"count": crud.count(collection, request.args.get("filter"))})

    @app.route("/api/<collection>", methods=["GET"], endpoint="crud_list")
    @guards.login_required
    def crud_list(collection: str):
        return jsonify(crud.list_documents(collection, parse_list_query(request.args)))

    @app.route("/api/<collection>/<doc_id>", methods=["GET"], endpoint="crud_get")
    @guards.login_required
    def crud_get(collection: str, doc_id: str):
        return jsonify(crud.get(collection, doc_id))

    @app.route("/api/<collection>", methods=["POST"], endpoint="crud_create")
    @guards.login_required
    def crud_create(collection: str):
        return jsonify(crud.create(guards.current_viewer(), collection, json_body())), 201

    @app.route("/api/<collection>/bulk", methods=["POST"], endpoint="crud_bulk")
    @guards.login_required
    def crud_bulk(collection: str):
        return jsonify(crud.create_many(guards.current_viewer(), collection, json_body(expect=list))), 201

    @app.route("/api/<collection>/upsert", methods=["POST"], endpoint="crud_upsert")
    @guards.login_required
    def crud_upsert(collection: str):
        return jsonify(crud.upsert(guards.current_viewer(), collection, json_body()))

    @app.route("/api/<collection>/<doc_id>", methods=["PUT"], endpoint="crud_update")
    @guards.login_required
    def crud_update(collection: str, doc_id: str):
        crud.update(guards.current_viewer(), collection, doc_id, json_body())
        return jsonify({"success": True, "id": doc_id})

    @app.route("/api/<collection>/<doc_id>", methods=["DELETE"], endpoint="crud_delete")
    @guards.login_required
    def crud_delete(collection: str, doc_id: str):
        crud.delete(guards.current_viewer(), collection, doc_id)
        return jsonify({"success": True, "id": doc_id})
