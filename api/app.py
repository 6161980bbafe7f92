"""Flask app factory for the fight simulation API."""

from flask import Flask, jsonify, request

from api import services


def create_app(db_url: str = "sqlite:///fights.db") -> Flask:
    app = Flask(__name__)

    services.init_db(db_url)

    # ------------------------------------------------------------------
    # Fighters
    # ------------------------------------------------------------------

    @app.route("/api/fighters")
    def list_fighters():
        weight_class = request.args.get("weight_class")
        limit = int(request.args.get("limit", 200))
        return jsonify(services.get_fighters(weight_class, limit))

    @app.route("/api/fighters/<int:fighter_id>")
    def get_fighter(fighter_id: int):
        fighter = services.get_fighter(fighter_id)
        if not fighter:
            return jsonify({"error": "Fighter not found"}), 404
        return jsonify(fighter)

    @app.route("/api/fighters", methods=["POST"])
    def create_fighter():
        data = request.get_json(silent=True) or {}
        result = services.create_fighter(data)
        if "error" in result:
            return jsonify(result), 400
        return jsonify(result), 201

    # ------------------------------------------------------------------
    # Bouts
    # ------------------------------------------------------------------

    @app.route("/api/bouts/simulate", methods=["POST"])
    def simulate_bout():
        data = request.get_json(silent=True) or {}
        if "fighter_a_id" not in data or "fighter_b_id" not in data:
            return jsonify({"error": "fighter_a_id and fighter_b_id are required"}), 400
        result = services.simulate_bout(
            fighter_a_id=int(data["fighter_a_id"]),
            fighter_b_id=int(data["fighter_b_id"]),
            event_type=data.get("event_type"),
            seed=data.get("seed"),
            strategy_a=data.get("strategy_a"),
            strategy_b=data.get("strategy_b"),
        )
        if "error" in result:
            status = 404 if result["error"] == "Fighter not found" else 400
            return jsonify(result), status
        return jsonify(result)

    @app.route("/api/bouts/history")
    def bout_history():
        limit = int(request.args.get("limit", 20))
        fighter_id = request.args.get("fighter_id", type=int)
        return jsonify(services.get_bout_history(limit, fighter_id))

    @app.route("/api/bouts/batch", methods=["POST"])
    def batch_bouts():
        data = request.get_json(silent=True) or {}
        if "fighter_a_id" not in data or "fighter_b_id" not in data:
            return jsonify({"error": "fighter_a_id and fighter_b_id are required"}), 400
        result = services.start_batch(
            fighter_a_id=int(data["fighter_a_id"]),
            fighter_b_id=int(data["fighter_b_id"]),
            count=int(data.get("count", 100)),
            base_seed=data.get("base_seed"),
        )
        if "error" in result:
            return jsonify(result), 400
        return jsonify({"task_id": result["task_id"], "status": "pending"})

    # ------------------------------------------------------------------
    # Background tasks
    # ------------------------------------------------------------------

    @app.route("/api/tasks/<task_id>")
    def get_task(task_id: str):
        task = services.get_task(task_id)
        if not task:
            return jsonify({"error": "Task not found"}), 404
        return jsonify(task)

    return app
