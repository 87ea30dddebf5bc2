"""Streaming XML event reader built on lxml.etree.iterparse

Apple Health exports regularly exceed 1GB, so the document is never
held in memory: every element is cleared once its end event has been
produced, together with its already-processed preceding siblings.
"""

import logging
import zipfile
import zlib

from lxml import etree

from healthkit_sqlite.classifier import classify, local_name
from healthkit_sqlite.models import StreamEvent
from healthkit_sqlite.utils.errors import SourceError, StructuralError

logger = logging.getLogger(__name__)


def iter_events(source):
    """Iterate over classified start/end events of an XML document

    Args:
        source: File path or binary file-like object

    Yields:
        StreamEvent for every element open and close, in document order

    Raises:
        StructuralError: If the document is malformed or truncated
        SourceError: If the source cannot be read (including corrupt
            archive members)
    """
    context = etree.iterparse(
        source,
        events=('start', 'end'),
        resolve_entities=False,
        huge_tree=True,
    )

    try:
        for event, elem in context:
            tag = local_name(elem.tag)
            if event == 'start':
                yield StreamEvent('start', classify(tag), tag, dict(elem.attrib), elem.sourceline)
                continue

            yield StreamEvent('end', classify(tag), tag, {}, elem.sourceline)

            # Free memory held by finished elements
            elem.clear()
            parent = elem.getparent()
            if parent is not None:
                while elem.getprevious() is not None:
                    del parent[0]
    except etree.XMLSyntaxError as e:
        line = e.position[0] if e.position else None
        raise StructuralError(f"XML parse error: {e.msg}", line=line)
    except (OSError, zipfile.BadZipFile, zlib.error) as e:
        raise SourceError(f"could not read XML stream: {e}", original_error=e)
    finally:
        del context
