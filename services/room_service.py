"""
Serviço de cômodos: CRUD, exclusão lógica com janela de recuperação
e expurgo dos cômodos expirados
"""
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from dotenv import load_dotenv
from sqlalchemy import func
from sqlalchemy.orm import Session

from models.box import Box
from models.item import Item
from models.rack import Rack
from models.room import Room
from services.errors import BlockedDeletionError, ConflictError, NotFoundError, ValidationError
from services.safety_service import HIGH_VALUE_THRESHOLD, SafetyAnalyzer

load_dotenv()

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Agora em UTC, sem tzinfo (como gravado no banco)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RoomService:
    """Gerencia cômodos"""

    RECOVERY_WINDOW_DAYS = int(os.getenv("ROOM_RECOVERY_WINDOW_DAYS", "30"))
    BULK_DELETE_LIMIT = 10

    @staticmethod
    def get_room(db: Session, room_id: int) -> Room:
        room = db.query(Room).filter(Room.id == room_id, Room.is_active == True).first()
        if not room:
            raise NotFoundError("Cômodo", room_id)
        return room

    @staticmethod
    def list_rooms(db: Session) -> List[Room]:
        return db.query(Room).filter(Room.is_active == True).order_by(Room.created_at.desc(), Room.id.desc()).all()

    @staticmethod
    def counts(db: Session, room_id: int) -> dict:
        """Itens ativos, caixas ativas e estantes do cômodo"""
        return {
            "items": db.query(func.count(Item.id)).filter(Item.room_id == room_id, Item.is_active == True).scalar() or 0,
            "boxes": db.query(func.count(Box.id)).filter(Box.room_id == room_id, Box.is_active == True).scalar() or 0,
            "racks": db.query(func.count(Rack.id)).filter(Rack.room_id == room_id).scalar() or 0,
        }

    @staticmethod
    def _ensure_unique_name(db: Session, name: str, exclude_room_id: Optional[int] = None) -> None:
        query = db.query(Room).filter(Room.name == name, Room.is_active == True)
        if exclude_room_id is not None:
            query = query.filter(Room.id != exclude_room_id)
        if query.first():
            raise ConflictError("Nome de cômodo já existe", value=name)

    @staticmethod
    def create_room(db: Session, name: str, description: Optional[str] = None, color: str = "#3B82F6") -> Room:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Nome do cômodo é obrigatório", {"field": "name"})
        RoomService._ensure_unique_name(db, cleaned)

        try:
            room = Room(
                name=cleaned,
                description=(description or "").strip() or None,
                color=color or "#3B82F6"
            )
            db.add(room)
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(room)
        logger.info("room created", extra={"room_id": room.id})
        return room

    @staticmethod
    def update_room(db: Session, room_id: int, patch: dict) -> Room:
        room = RoomService.get_room(db, room_id)

        if patch.get("name") is not None:
            cleaned = patch["name"].strip()
            if not cleaned:
                raise ValidationError("Nome do cômodo é obrigatório", {"field": "name"})
            if cleaned != room.name:
                RoomService._ensure_unique_name(db, cleaned, exclude_room_id=room.id)
            room.name = cleaned
        if "description" in patch and patch["description"] is not None:
            room.description = patch["description"].strip() or None
        if patch.get("color"):
            room.color = patch["color"]

        try:
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(room)
        return room

    @staticmethod
    def delete_room(db: Session, room_id: int) -> Room:
        """Exclusão lógica de cômodo vazio (recuperável dentro da janela)"""
        room = RoomService.get_room(db, room_id)
        SafetyAnalyzer.ensure_deletable(db, "room", room_id)

        try:
            room.is_active = False
            room.deleted_at = utcnow()
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(room)
        logger.info("room deleted", extra={"room_id": room_id})
        return room

    @staticmethod
    def recovery_status(room: Room, now: Optional[datetime] = None) -> dict:
        now = now or utcnow()
        deleted_at = room.deleted_at or room.updated_at
        days_since = (now - deleted_at).days
        window = RoomService.RECOVERY_WINDOW_DAYS
        return {
            "is_recoverable": days_since <= window,
            "days_since_deletion": days_since,
            "days_remaining": max(0, window - days_since),
            "expires_at": deleted_at + timedelta(days=window),
        }

    @staticmethod
    def list_deleted(db: Session, include_expired: bool = False, now: Optional[datetime] = None) -> List[dict]:
        """Cômodos excluídos com o status de recuperação"""
        now = now or utcnow()
        rooms = db.query(Room).filter(Room.is_active == False).order_by(Room.deleted_at.desc()).all()

        result = []
        for room in rooms:
            status = RoomService.recovery_status(room, now)
            if not include_expired and not status["is_recoverable"]:
                continue
            result.append({"room": room, "recovery_status": status})
        return result

    @staticmethod
    def restore_room(db: Session, room_id: int, now: Optional[datetime] = None) -> dict:
        """
        Restaura cômodo excluído dentro da janela de recuperação.
        Se já houver cômodo ativo com o mesmo nome, renomeia.
        """
        now = now or utcnow()
        room = db.query(Room).filter(Room.id == room_id, Room.is_active == False).first()
        if not room:
            raise NotFoundError("Cômodo excluído", room_id)

        status = RoomService.recovery_status(room, now)
        if not status["is_recoverable"]:
            raise ValidationError(
                "Janela de recuperação expirada",
                {
                    "deleted_at": room.deleted_at.isoformat() if room.deleted_at else None,
                    "recovery_window_days": RoomService.RECOVERY_WINDOW_DAYS,
                }
            )

        original_name = room.name
        final_name = original_name
        if db.query(Room).filter(Room.name == original_name, Room.is_active == True).first():
            final_name = f"{original_name} (Restored {now.date().isoformat()})"
            if db.query(Room).filter(Room.name == final_name, Room.is_active == True).first():
                final_name = f"{original_name} (Restored {int(now.timestamp())})"

        try:
            room.name = final_name
            room.is_active = True
            room.deleted_at = None
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(room)
        logger.info("room restored", extra={"room_id": room.id, "name_changed": final_name != original_name})
        return {"room": room, "name_changed": final_name != original_name, "original_name": original_name}

    @staticmethod
    def purge_expired(db: Session, now: Optional[datetime] = None) -> int:
        """Apaga definitivamente os cômodos excluídos além da janela de recuperação"""
        now = now or utcnow()
        cutoff = now - timedelta(days=RoomService.RECOVERY_WINDOW_DAYS)
        expired = db.query(Room).filter(
            Room.is_active == False,
            Room.deleted_at.isnot(None),
            Room.deleted_at < cutoff
        ).all()

        try:
            for room in expired:
                db.delete(room)
            db.commit()
        except Exception:
            db.rollback()
            raise

        if expired:
            logger.info("expired rooms purged", extra={"purged": len(expired)})
        return len(expired)

    @staticmethod
    def bulk_analysis(db: Session, room_ids: List[int]) -> dict:
        """
        Análise de segurança combinada para vários cômodos:
        totais, bloqueios/avisos gerais e o relatório de cada cômodo
        """
        if not room_ids:
            raise ValidationError("Lista de cômodos é obrigatória", {"field": "room_ids"})
        unique_ids = list(dict.fromkeys(room_ids))
        if len(unique_ids) > RoomService.BULK_DELETE_LIMIT:
            raise ValidationError(
                f"Exclusão em lote limitada a {RoomService.BULK_DELETE_LIMIT} cômodos",
                {"field": "room_ids", "requested": len(unique_ids), "max": RoomService.BULK_DELETE_LIMIT}
            )

        found = [
            r.id for r in db.query(Room).filter(Room.id.in_(unique_ids), Room.is_active == True).all()
        ]
        if not found:
            raise NotFoundError("Cômodo", unique_ids, "Nenhum cômodo ativo encontrado")

        totals = {"items": 0, "boxes": 0, "racks": 0, "total": 0, "total_value": 0.0}
        reports = []
        for room_id in unique_ids:
            if room_id not in found:
                continue
            report = SafetyAnalyzer.analyze_room(db, room_id)
            for key in ("items", "boxes", "racks", "total"):
                totals[key] += report["counts"][key]
            totals["total_value"] += sum(i["value"] or 0 for i in report["dependencies"]["items"])
            reports.append(report)

        blockers = []
        if totals["items"]:
            blockers.append(f"{totals['items']} item(ns) ativo(s) nos cômodos")
        if totals["boxes"]:
            blockers.append(f"{totals['boxes']} caixa(s) nos cômodos")
        if totals["racks"]:
            blockers.append(f"{totals['racks']} estante(s) nos cômodos")

        warnings = []
        if totals["total_value"] > HIGH_VALUE_THRESHOLD:
            warnings.append(f"Valor total estimado: {totals['total_value']:.2f}")

        safe = [r["entity_id"] for r in reports if r["can_delete"]]
        blocked = [r["entity_id"] for r in reports if not r["can_delete"]]
        return {
            "requested_rooms": len(unique_ids),
            "found_rooms": len(found),
            "not_found": [i for i in unique_ids if i not in found],
            "can_delete_all": not blocked,
            "blockers": blockers,
            "warnings": warnings,
            "totals": totals,
            "room_analysis": reports,
            "safe_to_delete": safe,
            "blocked_from_deletion": blocked,
        }

    @staticmethod
    def bulk_delete(db: Session, room_ids: List[int]) -> dict:
        """
        Exclusão lógica de vários cômodos numa única transação.
        Se qualquer um estiver bloqueado nenhum é excluído.
        """
        analysis = RoomService.bulk_analysis(db, room_ids)
        if not analysis["can_delete_all"]:
            logger.warning(
                "bulk room deletion blocked",
                extra={"blocked": analysis["blocked_from_deletion"], "requested": analysis["requested_rooms"]}
            )
            raise BlockedDeletionError(analysis)

        deleted_at = utcnow()
        try:
            rooms = db.query(Room).filter(Room.id.in_(analysis["safe_to_delete"])).all()
            for room in rooms:
                room.is_active = False
                room.deleted_at = deleted_at
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info("rooms bulk deleted", extra={"room_ids": analysis["safe_to_delete"]})
        return {
            "deleted": analysis["safe_to_delete"],
            "not_found": analysis["not_found"],
            "analysis": analysis,
        }
