"""
Genealogy import API blueprint
"""

from flask import Blueprint, request

from genealogy_app.services.exceptions import ValidationError
from genealogy_app.services.genealogy_import_service import genealogy_import_service
from genealogy_app.shared.api_response_formatter import APIResponseFormatter
from genealogy_app.shared.logging_config import get_project_logger
from genealogy_app.shared.models import ImportOptions


logger = get_project_logger(__name__)

api_genealogy = Blueprint('api_genealogy', __name__, url_prefix='/api/genealogy')


def _uploaded_file() -> tuple[bytes, str]:
    """Read the multipart 'file' field"""
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        raise ValidationError('No file uploaded')
    return upload.read(), upload.filename


@api_genealogy.route('/detect', methods=['POST'])
def detect():
    """Detect the format of an uploaded file"""
    content, file_name = _uploaded_file()
    detected = genealogy_import_service.detect_format(content, file_name)
    return APIResponseFormatter.success({'format': detected, 'file_name': file_name})


@api_genealogy.route('/preview', methods=['POST'])
def preview():
    """Summary statistics for an uploaded file"""
    content, file_name = _uploaded_file()
    summary = genealogy_import_service.get_import_preview(content, file_name)
    return APIResponseFormatter.success({'preview': summary.to_dict()})


@api_genealogy.route('/import', methods=['POST'])
def import_file():
    """Convert an uploaded file into graph nodes and edges"""
    content, file_name = _uploaded_file()
    try:
        options = ImportOptions.from_dict(request.form)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    imported = genealogy_import_service.import_genealogy_file(content, file_name, options)
    logger.info(f"API import of {file_name}: {imported.result.node_count} nodes")
    return APIResponseFormatter.success(
        imported.to_dict(),
        message=f"Imported {imported.result.node_count} persons and {imported.result.edge_count} relations"
    )


@api_genealogy.route('/options')
def options():
    """Default import options"""
    return APIResponseFormatter.success({'options': ImportOptions().to_dict()})
