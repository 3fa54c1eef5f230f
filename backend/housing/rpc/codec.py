from pydantic import BaseModel, ConfigDict


class RpcMessage(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )


class Empty(RpcMessage):
    pass


def encode(message: BaseModel) -> bytes:
    return message.model_dump_json(by_alias=True).encode()


def decoder(message_type: type[BaseModel]):
    def decode(data: bytes) -> BaseModel:
        return message_type.model_validate_json(data)

    return decode
