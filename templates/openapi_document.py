import copy
from functools import lru_cache
from typing import Any, Dict

import yaml

OPENAPI_YAML = """openapi: 3.0.3
info:
  title: Delay Proxy API
  version: 1.0.0
  description: >
    Reverse proxy that injects latency and forced responses between a client
    and a single upstream server.
paths:
  /api/delay:
    get:
      summary: Get the current injected delay
      responses:
        "200":
          description: Current delay
          content:
            application/json:
              schema:
                $ref: "#/components/schemas/Delay"
        "500":
          description: The delay could not be loaded
          content:
            application/json:
              schema:
                $ref: "#/components/schemas/Error"
    post:
      summary: Update the injected delay
      requestBody:
        required: true
        content:
          application/json:
            schema:
              type: object
              properties:
                delay:
                  type: number
                  minimum: 0
                  description: Delay in milliseconds; omitted keeps the current value
      responses:
        "200":
          description: Delay updated
          content:
            application/json:
              schema:
                type: object
                properties:
                  success:
                    type: boolean
                  delay:
                    type: number
        "400":
          description: Invalid JSON or invalid field
          content:
            application/json:
              schema:
                $ref: "#/components/schemas/ValidationError"
  /api/kill-switch:
    get:
      summary: Get the kill-switch record
      responses:
        "200":
          description: Current kill-switch record
          content:
            application/json:
              schema:
                $ref: "#/components/schemas/KillSwitch"
        "500":
          description: The record could not be loaded
          content:
            application/json:
              schema:
                $ref: "#/components/schemas/Error"
    post:
      summary: Partially update the kill-switch record
      description: Omitted fields keep their stored value.
      requestBody:
        required: true
        content:
          application/json:
            schema:
              type: object
              properties:
                enabled:
                  type: boolean
                status:
                  type: integer
                  minimum: 100
                  maximum: 599
                headers:
                  type: object
                  additionalProperties:
                    type: string
                body:
                  type: string
      responses:
        "200":
          description: Kill-switch updated
          content:
            application/json:
              schema:
                type: object
                properties:
                  success:
                    type: boolean
                  state:
                    $ref: "#/components/schemas/KillSwitch"
        "400":
          description: Invalid JSON or invalid field
          content:
            application/json:
              schema:
                $ref: "#/components/schemas/ValidationError"
  /proxy/{path}:
    parameters:
      - name: path
        in: path
        required: true
        schema:
          type: string
        description: Path forwarded to the upstream, query string included
    get:
      summary: Forward a request to the upstream
      description: >
        Waits for the configured delay, then forwards the request. When the
        kill-switch is enabled the configured response is returned instead and
        the upstream is not contacted. Every HTTP method is accepted.
      responses:
        "200":
          description: Upstream response, or the kill-switch response
        "502":
          description: The upstream could not be reached
          content:
            application/json:
              schema:
                $ref: "#/components/schemas/Error"
components:
  schemas:
    Delay:
      type: object
      properties:
        delay:
          type: number
          minimum: 0
    KillSwitch:
      type: object
      properties:
        enabled:
          type: boolean
        status:
          type: integer
        headers:
          type: object
          additionalProperties:
            type: string
        body:
          type: string
    Error:
      type: object
      properties:
        error:
          type: string
    ValidationError:
      type: object
      properties:
        error:
          type: string
        details:
          type: array
          items:
            type: object
"""


@lru_cache(maxsize=1)
def _parsed_document() -> Dict[str, Any]:
    return yaml.safe_load(OPENAPI_YAML)


def get_openapi_document(server_url: str = None) -> Dict[str, Any]:
    """
    Get the OpenAPI document describing this service.

    Args:
        server_url: Base URL to advertise in ``servers``; omitted when None

    Returns:
        A fresh copy of the document, safe to mutate
    """
    document = copy.deepcopy(_parsed_document())
    if server_url:
        document["servers"] = [{"url": server_url}]
    return document
