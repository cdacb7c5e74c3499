"""Simple shared-password authentication for the PatentVault web UI."""

import hmac
import os

from flask import Flask, jsonify, redirect, render_template, request, session


def init_auth(app: Flask):
    """Register authentication middleware on the Flask app.

    Set the APP_PASSWORD environment variable to enable password protection.
    If APP_PASSWORD is not set, authentication is disabled (open access).
    """
    password = os.environ.get("APP_PASSWORD", "")

    if not password:
        return

    @app.before_request
    def require_login():
        if request.path in ("/login", "/logout"):
            return
        if session.get("authenticated"):
            return
        if request.path.startswith("/api/"):
            return jsonify({"error": "Authentication required"}), 401
        return redirect("/login")

    @app.route("/login", methods=["GET", "POST"])
    def login():
        error = None
        if request.method == "POST":
            given = request.form.get("password", "")
            if hmac.compare_digest(given.encode("utf-8"), password.encode("utf-8")):
                session["authenticated"] = True
                return redirect("/")
            error = "密碼錯誤"
        return render_template("login.html", error=error)

    @app.route("/logout")
    def logout():
        session.clear()
        return redirect("/login")
