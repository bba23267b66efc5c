import json
import logging
import aiofiles
from typing import Dict, Tuple
from pydantic import ValidationError

from typestore.core.exceptions import SchemaDefinitionError
from typestore.models.api_models import SchemaDefinition, buildTypeGraph
from typestore.models.type_models import TypeDef

logger = logging.getLogger(__name__)

class SchemaLoader:
    async def readSchemaDocument(self, path: str) -> SchemaDefinition:
        try:
            async with aiofiles.open(path, mode='r', encoding='utf-8') as f:
                content = await f.read()
            return SchemaDefinition.model_validate(json.loads(content))
        except json.JSONDecodeError as e:
            raise SchemaDefinitionError(f"Could not parse schema JSON from {path}: {e}") from e
        except ValidationError as e:
            raise SchemaDefinitionError(f"Invalid schema document {path}: {e}") from e

    async def loadSchema(self, path: str) -> Tuple[SchemaDefinition, Dict[str, TypeDef]]:
        document = await self.readSchemaDocument(path)
        types = buildTypeGraph(document)
        logger.info("Loaded %d type(s) from %s", len(types), path)
        return document, types

schemaLoader = SchemaLoader()
