"""Dumping the contents of an Avro data file as JSON."""

from io import BufferedReader, BytesIO, RawIOBase
from typing import IO, Optional, Union

from .json_encoder import JsonEncoder
from .reader import DataFileReader

DEFAULT_HEAD_COUNT = 10


def dump(
    input: Union[str, BytesIO, RawIOBase, BufferedReader, IO[bytes]],
    output: IO[str],
    pretty: bool = False,
    head_count: Optional[int] = None,
) -> int:
    """Write the values of an Avro data file to ``output`` as Avro JSON.

    Values are written in file order, one JSON value per record, followed by a single newline.
    The input is closed before this function returns, whether or not it succeeds.

    :param input: a filename or binary stream holding an Avro data file. The stream is closed
        when the dump ends.
    :param output: the text stream to write to.
    :param pretty: if ``True``, values are indented over multiple lines.
    :param head_count: if not None, at most this many records are written.
    :return: the number of records written.
    :raises ~avrojson.exceptions.FormatError: if the input is not a valid data file.
    """
    written = 0
    with DataFileReader(input) as reader:
        if head_count is not None and head_count < 0:
            raise ValueError(f"head count must not be negative, got {head_count}")
        encoder = JsonEncoder(reader.schema, output, pretty=pretty)
        if head_count != 0:
            for datum in reader:
                encoder.write(datum)
                written += 1
                if written == head_count:
                    break
        encoder.flush()
        output.write("\n")
        output.flush()
    return written


__all__ = ["DEFAULT_HEAD_COUNT", "dump"]
