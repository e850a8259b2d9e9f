from flask import Blueprint, jsonify

main = Blueprint('main', __name__)


@main.route('/alive', methods=['GET'])
def alive():
    return jsonify({'alive': True})
