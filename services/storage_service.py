# services/storage_service.py
"""
File-backed invoice store.

Each invoice number owns two files in the invoice directory:
     <invoiceNo>.json  serialized InvoiceRecord
     <invoiceNo>.pdf   rendered document, also served at /invoices/<invoiceNo>.pdf

Writes go through a temp file and os.replace, so readers never see a
half-written artifact. Saving an existing number overwrites both files.
"""
import os
import re
import tempfile
from pathlib import Path

import structlog
from pydantic import ValidationError

from exceptions import InvoiceNotFoundError, InvoiceStorageError
from schemas.invoice import InvoiceRecord, StoredInvoice

logger = structlog.get_logger(__name__)

PUBLIC_PREFIX = "/invoices"

_SAFE_INVOICE_NO = re.compile(r"^[A-Za-z0-9_-]+$")


class InvoiceStore:
     """Persist and retrieve invoice records and documents by invoice number."""

     def __init__(self, directory: str, public_prefix: str = PUBLIC_PREFIX):
          self.directory = Path(directory).resolve()
          self.public_prefix = public_prefix.rstrip("/")

     def ensure_directory(self) -> None:
          self.directory.mkdir(parents=True, exist_ok=True)

     def _check(self, invoice_no: str) -> str:
          if not invoice_no or not _SAFE_INVOICE_NO.match(invoice_no):
               raise InvoiceNotFoundError(invoice_no)
          return invoice_no

     def json_path(self, invoice_no: str) -> Path:
          return self.directory / f"{self._check(invoice_no)}.json"

     def pdf_path(self, invoice_no: str) -> Path:
          return self.directory / f"{self._check(invoice_no)}.pdf"

     def file_url(self, invoice_no: str) -> str:
          return f"{self.public_prefix}/{self._check(invoice_no)}.pdf"

     def exists(self, invoice_no: str) -> bool:
          try:
               return self.json_path(invoice_no).is_file()
          except InvoiceNotFoundError:
               return False

     def save(self, record: InvoiceRecord, document: bytes) -> StoredInvoice:
          """
          Write the document and the record for ``record.invoice_no``.

          Returns:
               StoredInvoice with both paths and the public document URL

          Raises:
               InvoiceStorageError: If either file cannot be written
          """
          invoice_no = record.invoice_no
          pdf_path = self.pdf_path(invoice_no)
          json_path = self.json_path(invoice_no)
          payload = record.model_dump_json(by_alias=True, indent=2).encode("utf-8")
          try:
               self.ensure_directory()
               self._write_atomic(pdf_path, document)
               self._write_atomic(json_path, payload)
          except OSError as e:
               logger.error("invoice_save_failed", invoice_no=invoice_no, error=str(e))
               raise InvoiceStorageError(f"Could not save {invoice_no}: {e}") from e

          return StoredInvoice(
               invoice_no=invoice_no,
               pdf_path=str(pdf_path),
               json_path=str(json_path),
               file_url=self.file_url(invoice_no),
          )

     def load(self, invoice_no: str) -> InvoiceRecord:
          """
          Read the stored record.

          Raises:
               InvoiceNotFoundError: If no record exists for the number
               InvoiceStorageError: If the file exists but cannot be parsed
          """
          path = self.json_path(invoice_no)
          try:
               raw = path.read_bytes()
          except FileNotFoundError:
               raise InvoiceNotFoundError(invoice_no)
          except OSError as e:
               raise InvoiceStorageError(f"Could not read {invoice_no}: {e}") from e
          try:
               return InvoiceRecord.model_validate_json(raw)
          except ValidationError as e:
               raise InvoiceStorageError(f"Corrupt record {invoice_no}") from e

     def load_document(self, invoice_no: str) -> bytes:
          """
          Read the stored PDF.

          Raises:
               InvoiceNotFoundError: If no document exists for the number
          """
          path = self.pdf_path(invoice_no)
          try:
               return path.read_bytes()
          except FileNotFoundError:
               raise InvoiceNotFoundError(invoice_no, message="Document not found")
          except OSError as e:
               raise InvoiceStorageError(f"Could not read {invoice_no}: {e}") from e

     def _write_atomic(self, path: Path, data: bytes) -> None:
          fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{path.name}.", suffix=".tmp")
          try:
               with os.fdopen(fd, "wb") as f:
                    f.write(data)
               os.replace(tmp, path)
          except BaseException:
               if os.path.exists(tmp):
                    os.unlink(tmp)
               raise
