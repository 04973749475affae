# app/api/schemas.py
# Cuerpos aceptados por los endpoints de Contifico. Campos desconocidos se rechazan.
# Las reglas de negocio (precio > 0, SKU obligatorio, etc.) se validan en los servicios.
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class CategoryRequest(StrictModel):
    category: Optional[str] = None
    tipo: Optional[str] = None


class ProductServiceRequest(StrictModel):
    tipo: Optional[str] = None
    nombre: Optional[str] = None
    descripcion: Optional[str] = None
    categoria: Optional[str] = None
    precio: Optional[float] = None
    # precio de compra, usado en el ingreso de inventario inicial
    compra: Optional[float] = None
    stock: Optional[float] = 0
    sku: Optional[str] = None
    estado: bool = True


class InventoryDetail(StrictModel):
    id: str
    cantidad: float
    precio: Optional[float] = None


class InventoryMovementRequest(StrictModel):
    tipo: Optional[str] = None
    productDetails: List[InventoryDetail] = []
    descripcion: Optional[str] = None


class PersonRequest(StrictModel):
    cedula: Optional[str] = None
    razonSocial: Optional[str] = None
    telefono: Optional[str] = None
    email: Optional[str] = None
    direccion: Optional[str] = None
    esCliente: bool = True
    esEmpleado: bool = False
    esVendedor: bool = False


class DocumentPerson(StrictModel):
    cedula: Optional[str] = None
    razon_social: Optional[str] = None
    telefonos: Optional[str] = None
    email: Optional[str] = None
    direccion: Optional[str] = None
    tipo: Optional[str] = "N"
    es_extranjero: bool = False


class DocumentLine(StrictModel):
    producto_id: str
    cantidad: float
    precio: float
    porcentaje_iva: float = 0
    porcentaje_descuento: float = 0


class DocumentPayment(StrictModel):
    forma_cobro: str
    monto: float
    numero_comprobante: Optional[str] = None
    fecha: Optional[str] = None


class ElectronicDocumentRequest(StrictModel):
    documento: Optional[str] = None
    fecha_emision: Optional[str] = None
    tipo_documento: str = "FAC"
    estado: str = "P"
    electronico: bool = True
    descripcion: Optional[str] = None
    cliente: Optional[DocumentPerson] = None
    vendedor: Optional[DocumentPerson] = None
    detalles: List[DocumentLine] = []
    cobros: List[DocumentPayment] = []
