"""
Script para popular o banco com uma casa de exemplo:
- Cômodo "Garagem" com 2 estantes
  - Estante 1: uniforme, 5 prateleiras × 6 posições = 30 posições
  - Estante 2: avançada, prateleiras com 3, 4 e 2 posições = 9 posições
- 6 caixas: 4 posicionadas, 2 em staging
- Alguns itens dentro das caixas (a estante 1 fica bloqueada)
"""
from sqlalchemy.orm import Session
from models.database import SessionLocal, engine, Base
from models.room import Room
from services.room_service import RoomService
from services.rack_service import RackService
from services.placement_service import PlacementCoordinator
from services.item_service import ItemService

SEED_ACTOR = "seed"


def seed_database():
    """Popula o banco com a casa de exemplo"""
    # Criar todas as tabelas
    Base.metadata.create_all(bind=engine)

    db: Session = SessionLocal()
    try:
        # Verificar se já existe dados
        if db.query(Room).count() > 0:
            print("Banco já possui dados. Use --force para recriar.")
            return

        garage = RoomService.create_room(db, "Garagem", "Ferramentas e material de camping", "#F59E0B")

        rack1 = RackService.create_rack(
            db, garage.id, "Estante de metal", max_shelves=5, positions_per_shelf=6, actor=SEED_ACTOR
        )
        rack2 = RackService.create_rack(
            db,
            garage.id,
            "Estante de madeira",
            max_shelves=3,
            shelf_config=[
                {"shelf_number": 1, "position_count": 3},
                {"shelf_number": 2, "position_count": 4},
                {"shelf_number": 3, "position_count": 2},
            ],
            actor=SEED_ACTOR
        )

        names = ["Ferramentas", "Camping", "Natal", "Elétrica", "Pintura", "Jardim"]
        boxes = [
            PlacementCoordinator.create_box(db, garage.id, name=name, size="M", actor=SEED_ACTOR)
            for name in names
        ]

        # 4 caixas posicionadas, 2 ficam em staging
        PlacementCoordinator.place_box(db, boxes[0].id, rack1.id, 1, 1, actor=SEED_ACTOR)
        PlacementCoordinator.place_box(db, boxes[1].id, rack1.id, 1, 1, actor=SEED_ACTOR)
        PlacementCoordinator.place_box(db, boxes[2].id, rack1.id, 2, 3, actor=SEED_ACTOR)
        PlacementCoordinator.place_box(db, boxes[3].id, rack2.id, 2, 4, actor=SEED_ACTOR)

        ItemService.create_item(db, garage.id, "Furadeira", boxes[0].id, category="Ferramentas", value=350.0)
        ItemService.create_item(db, garage.id, "Jogo de chaves", boxes[0].id, category="Ferramentas", value=120.0)
        ItemService.create_item(db, garage.id, "Barraca 4 pessoas", boxes[1].id, category="Camping", value=600.0)
        ItemService.create_item(db, garage.id, "Pisca-pisca", boxes[2].id, category="Decoração")

        total_positions = len(rack1.positions) + len(rack2.positions)
        print(f"✅ Seed concluído!")
        print(f"   - 1 cômodo criado ({garage.name})")
        print(f"   - 2 estantes criadas ({total_positions} posições)")
        print(f"   - {len(boxes)} caixas criadas (4 posicionadas, 2 em staging)")
        print(f"   - 4 itens criados")

    except Exception as e:
        db.rollback()
        print(f"❌ Erro ao fazer seed: {e}")
        raise
    finally:
        db.close()


def purge_expired_rooms():
    """Remove definitivamente os cômodos excluídos fora da janela de recuperação"""
    db: Session = SessionLocal()
    try:
        purged = RoomService.purge_expired(db)
        print(f"🧹 {purged} cômodo(s) expirado(s) removido(s)")
    finally:
        db.close()


if __name__ == "__main__":
    import sys
    if "--purge" in sys.argv:
        Base.metadata.create_all(bind=engine)
        purge_expired_rooms()
        sys.exit(0)

    if "--force" in sys.argv:
        # Deletar tudo e recriar
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        print("⚠️  Banco recriado do zero")

    seed_database()
